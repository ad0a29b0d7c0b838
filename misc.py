import abc
from typing import Union


class Number:
    def __init__(self, bit_depth: int, value: int = None):

        assert bit_depth >= 1
        self._bit_depth: int = bit_depth
        self._value: int = 0
        if value:
            self.set_value(value)

    def set_value(self, value: Union[int, 'Number']) -> None:
        # Two's complement wraparound: bits above bit_depth are dropped,
        # the top remaining bit is the sign.
        if isinstance(value, Number):
            value = value.value
        value &= 2 ** self._bit_depth - 1
        if value >> (self._bit_depth - 1):
            value -= 2 ** self._bit_depth
        self._value = value

    @property
    def value(self) -> int:
        return self._value

    @property
    def bit_depth(self):
        return self._bit_depth

    # the result keeps the smaller bit depth of the two operands
    def __add__(self, n: 'Number') -> 'Number':
        return Number(min(self.bit_depth, n.bit_depth), value=self.value + n.value)

    def __sub__(self, n: 'Number') -> 'Number':
        return Number(min(self.bit_depth, n.bit_depth), value=self.value - n.value)

    def __int__(self):
        return self._value

    def __str__(self):
        return str(self._value)

    def __repr__(self):
        return f'Number({self._bit_depth}, {self._value})'


class Register:

    def __init__(self, bit_depth: int):
        self._number: Number = Number(bit_depth)

    def read(self) -> Number:
        return Number(self._number.bit_depth, self._number.value)

    def write(self, n: Union[int, Number]) -> None:
        self._number.set_value(n)

    @property
    def value(self) -> Number:
        return self._number

    @property
    def bit_depth(self) -> int:
        return self._number.bit_depth


class Device(abc.ABC):

    @abc.abstractmethod
    def read(self) -> str:
        pass

    @abc.abstractmethod
    def write(self, text: str) -> None:
        pass

    def flush(self) -> None:
        pass
