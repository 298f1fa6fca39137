# filename: huffman_errors.py


class HuffmanError(ValueError):
    pass


class InvalidInput(HuffmanError):
    """Raised when an alphabet cannot be turned into a code."""


class UnencodableInput(HuffmanError):
    def __init__(self, message, position=None):
        super().__init__(message)
        self.position = position


class MalformedBitstring(HuffmanError):
    def __init__(self, message, position=None):
        super().__init__(message)
        self.position = position
