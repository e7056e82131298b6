from setuptools import find_packages, setup

from txec2 import version


long_description = """
Twisted-based asynchronous client for the Amazon EC2 Query API, and for the
Auto Scaling, Elastic Load Balancing, RDS and STS services which share its
wire conventions.  One client object drives every service family, each with
its own endpoint and API version, and waits for resources to settle.
"""


setup(
    name="txEC2",
    version=version.txec2,
    description="Async library for EC2 and the Query API services",
    author="txEC2 Developers",
    license="MIT",
    packages=find_packages(),
    long_description=long_description,
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Intended Audience :: System Administrators",
        "Intended Audience :: Information Technology",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Topic :: Internet :: WWW/HTTP",
        "Topic :: System :: Systems Administration",
        "License :: OSI Approved :: MIT License",
       ],
    include_package_data=True,
    zip_safe=False,
    python_requires=">=3.6",
    install_requires=[
        "attrs", "python-dateutil", "twisted[tls]>=15.5.0,!=17.1.0", "lxml",
        "incremental", "pyrsistent", "constantly", "zope.interface",
    ],
    extras_require={
        "test": ["twisted[tls]>=15.5.0,!=17.1.0"],
    },
    )
