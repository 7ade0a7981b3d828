"""
Portrait loading for the kiosk window.

Downloads and decoding run on a worker thread so a slow image host never
blocks the Tk event loop. The UI thread collects finished images with
``ready()``; only the image for the most recent request is ever returned.
"""

import base64
import io
import logging
import queue
import threading
from typing import Callable

import requests
from PIL import Image

from display.config import PORTRAIT_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

PORTRAIT_SIZE = (256, 256)


def load_image_bytes(url: str, timeout: float = PORTRAIT_TIMEOUT_SECONDS) -> bytes:
    if url.startswith("data:image/"):
        _, _, encoded = url.partition(",")
        return base64.b64decode(encoded)
    res = requests.get(url, timeout=timeout)
    res.raise_for_status()
    return res.content


class PortraitLoader:
    def __init__(
        self,
        fetch: Callable[[str], bytes] = load_image_bytes,
        size: tuple[int, int] = PORTRAIT_SIZE,
    ):
        self.fetch = fetch
        self.size = size
        self._results: queue.Queue = queue.Queue()
        self._generation = 0
        self._worker: threading.Thread | None = None

    def request(self, url: str) -> None:
        """Start loading url; any earlier request becomes stale."""
        self._generation += 1
        self._worker = threading.Thread(
            target=self._load,
            args=(self._generation, url),
            name="portrait-loader",
            daemon=True,
        )
        self._worker.start()

    def cancel(self) -> None:
        self._generation += 1

    def wait(self, timeout: float | None = None) -> None:
        if self._worker is not None:
            self._worker.join(timeout)

    def ready(self) -> Image.Image | None:
        """The finished image for the current request, if there is one."""
        latest = None
        while True:
            try:
                generation, image = self._results.get_nowait()
            except queue.Empty:
                return latest
            if generation == self._generation and image is not None:
                latest = image

    def _load(self, generation: int, url: str) -> None:
        image = None
        try:
            raw = self.fetch(url)
            image = Image.open(io.BytesIO(raw))
            image.load()
            image.thumbnail(self.size)
        except (requests.RequestException, OSError, ValueError) as e:
            logger.warning("Could not load portrait %s: %s", url[:60], e)
            image = None
        self._results.put((generation, image))
