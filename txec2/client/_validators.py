# Licenced under the txEC2 licence available at /LICENSE in the txEC2 source.

"""
attrs validators for action declarations.
"""

import attr
from attr import validators


def tuple_of(validator):
    """
    Require a tuple each element of which C{validator} accepts, such as the
    option names an action declares required.
    """
    return _ElementsOf(tuple, validator)


@attr.s(frozen=True)
class _ElementsOf(object):
    container_type = attr.ib()
    element_validator = attr.ib()

    def __call__(self, inst, attribute, value):
        validators.instance_of(self.container_type)(inst, attribute, value)
        for element in value:
            self.element_validator(inst, attribute, element)
