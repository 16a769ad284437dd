class OpError(Exception):
    code = 'UNKNOWN'

    def __init__(self, message):
        super().__init__(message)
        self.message = message

    def __str__(self):
        return f'{self.code}: {self.message}'


class OutOfRangeError(OpError):
    code = 'OUT_OF_RANGE'

    def __init__(self, message='End of sequence'):
        super().__init__(message)


class InvalidArgumentError(OpError, ValueError):
    code = 'INVALID_ARGUMENT'


class FailedPreconditionError(OpError):
    code = 'FAILED_PRECONDITION'
