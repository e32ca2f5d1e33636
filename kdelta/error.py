class KdeltaError(Exception):
    pass


class SetupError(KdeltaError):
    """
    raised when an input alignment or reference file cannot be opened or is missing its index
    """
    pass


class WindowFetchError(KdeltaError):
    """
    raised when a worker fails while processing a window. Aborts the run

    Attributes:
        stage (str): the processing step that failed
        window (Window): the window being processed
    """

    def __init__(self, stage, window, *pos):
        KdeltaError.__init__(self, stage, window, *pos)
        self.stage = stage
        self.window = window

    def __str__(self):
        return 'failed to {} for window {}: {}'.format(
            self.stage, self.window, ' '.join([str(p) for p in self.args[2:]])
        )


class NoRegionsError(KdeltaError):
    pass
