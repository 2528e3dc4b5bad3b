"""值对象基类"""

from dataclasses import dataclass


@dataclass(frozen=True)
class BaseValueObject:
    """
    值对象基类

    值对象不可变，以全部字段判等。子类可覆盖 validate() 做构造校验。
    """

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """校验值对象（默认不做任何检查）"""
        pass
