"""
Integer codecs for postings lists: gap encoding and variable byte encoding.
"""

from typing import List, Tuple


class GapEncoder:
    """
    Gap encoding for postings lists.
    Stores differences between consecutive values instead of absolute values.
    """

    @staticmethod
    def encode(values: List[int]) -> List[int]:
        """
        Encode a strictly ascending list of integers as gaps.

        Only the first value may be negative; every later gap is positive.

        Example:
            [1, 5, 10, 15, 20] -> [1, 4, 5, 5, 5]

        Raises:
            ValueError: If values are not strictly ascending
        """
        if not values:
            return []

        gaps = [values[0]]
        for i in range(1, len(values)):
            gap = values[i] - values[i - 1]
            if gap <= 0:
                raise ValueError("Values must be strictly ascending for gap encoding")
            gaps.append(gap)

        return gaps

    @staticmethod
    def decode(gaps: List[int]) -> List[int]:
        """
        Decode gaps back to original values.

        Example:
            [1, 4, 5, 5, 5] -> [1, 5, 10, 15, 20]
        """
        values = []
        running = 0
        for gap in gaps:
            running += gap
            values.append(running)
        return values


class VariableByteEncoder:
    """
    Variable byte encoding for integers.
    Uses fewer bytes for smaller numbers.

    Encoding format (big-endian groups):
    - 7 bits for data per byte
    - 1 bit for continuation (1 = more bytes follow, 0 = last byte)
    """

    @staticmethod
    def encode_number(n: int) -> bytes:
        """
        Encode a single non-negative integer.

        Raises:
            ValueError: If n is negative
        """
        if n < 0:
            raise ValueError("Variable byte encoding only works for non-negative integers")

        result = [n & 0x7F]
        n >>= 7
        while n > 0:
            result.append((n & 0x7F) | 0x80)
            n >>= 7

        return bytes(reversed(result))

    @staticmethod
    def decode_number(data: bytes, offset: int = 0) -> Tuple[int, int]:
        """
        Decode a single integer.

        Returns:
            Tuple of (decoded_integer, bytes_consumed)

        Raises:
            ValueError: If the data ends in the middle of a number
        """
        n = 0
        bytes_read = 0

        while True:
            if offset + bytes_read >= len(data):
                raise ValueError(f"Truncated variable byte data at offset {offset}")
            byte = data[offset + bytes_read]
            bytes_read += 1
            n = (n << 7) | (byte & 0x7F)
            if (byte & 0x80) == 0:
                return n, bytes_read

    @staticmethod
    def encode_list(numbers: List[int]) -> bytes:
        out = bytearray()
        for n in numbers:
            out += VariableByteEncoder.encode_number(n)
        return bytes(out)

    @staticmethod
    def decode_list(data: bytes, count: int, offset: int = 0) -> Tuple[List[int], int]:
        """
        Decode `count` integers starting at `offset`.

        Returns:
            Tuple of (numbers, bytes_consumed)
        """
        numbers = []
        position = offset
        for _ in range(count):
            n, bytes_read = VariableByteEncoder.decode_number(data, position)
            numbers.append(n)
            position += bytes_read
        return numbers, position - offset


def zigzag_encode(n: int) -> int:
    """Map a signed 64-bit integer onto a non-negative one (0, -1, 1, -2 -> 0, 1, 2, 3)."""
    return (n << 1) ^ (n >> 63)


def zigzag_decode(n: int) -> int:
    return (n >> 1) ^ -(n & 1)
