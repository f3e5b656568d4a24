"""Console progress indicator for container exports."""

import os
import sys
import threading

LOG_PREFIX = "[INFO] "
PROGRESS_FILL = "#"
PROGRESS_WIDTH = 33
REFRESH_RATE = 0.06
ANIMATION = ("|", "/", "-", "\\")
CLEAR_PROGRESS = " " * 112 + "\r"


def display_size(size):
    """Human readable byte count, rounded down (e.g. ``"12 MB"``)."""
    for unit, factor in (("GB", 1 << 30), ("MB", 1 << 20), ("KB", 1 << 10)):
        if size >= factor:
            return f"{size // factor} {unit}"
    return f"{size} bytes"


def file_size_source(path):
    """Size source reading the current length of ``path`` (0 if missing)."""

    def size():
        try:
            return os.path.getsize(path)
        except OSError:
            return 0

    return size


class ExtractProgressIndicator(threading.Thread):
    """Renders a spinner and percentage while a file grows toward a size.

    The target size is only an estimate, so the loop ends either when the
    current size reaches it or when :meth:`finished` is called.
    """

    def __init__(self, size_source, target_size, stream=None, refresh_rate=REFRESH_RATE):
        super().__init__(daemon=True)
        self.size_source = size_source
        self.target_size = target_size or 0
        self.stream = stream or sys.stdout
        self.refresh_rate = refresh_rate
        self.frames = 0
        self._finished = threading.Event()

    def render(self, current_size):
        percentage = (current_size / self.target_size) * 100 if self.target_size > 0 else 0
        blocks = min(int(percentage / 3), PROGRESS_WIDTH)
        frame = ANIMATION[self.frames % len(ANIMATION)]
        self.frames += 1
        bar = PROGRESS_FILL * blocks + " " * (PROGRESS_WIDTH - blocks)
        return (
            f"{LOG_PREFIX}{frame} [{bar}] {int(percentage)}% - "
            f"{display_size(current_size)}                       \r"
        )

    def run(self):
        while True:
            current_size = self.size_source()
            self.stream.write(self.render(current_size))
            self.stream.flush()
            if self._finished.wait(self.refresh_rate):
                break
            if current_size >= self.target_size:
                break
        self.stream.write(CLEAR_PROGRESS)
        self.stream.flush()

    def finished(self):
        self._finished.set()

    @property
    def is_finished(self):
        return self._finished.is_set()
