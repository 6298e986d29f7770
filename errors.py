class HuffmanError(Exception): # base class for everything the codec raises on purpose
    pass


class SourceReadError(HuffmanError, OSError): # input file could not be opened or read
    pass


class SinkWriteError(HuffmanError, OSError): # output file could not be opened or written
    pass


class HeaderCorruptError(HuffmanError, ValueError): # frequency table header is malformed
    pass


class TruncatedStreamError(HuffmanError, EOFError): # bits ran out before the end-of-stream symbol
    pass
