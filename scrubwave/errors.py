"""Error taxonomy for waveform runs."""


class WaveformError(Exception):
    """Base class for every failure a waveform run can report."""

    retryable = False


class InvalidArgument(WaveformError, ValueError):
    """Bad plan, dimensions, color or request field. A caller bug."""


class FetchError(WaveformError):
    """The audio source could not be opened or read."""

    retryable = True

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class DecodeError(WaveformError):
    """The audio could not be decoded or analyzed."""


class AnalysisTimeout(WaveformError, TimeoutError):
    """Analysis exceeded its wall-clock budget."""

    retryable = True
