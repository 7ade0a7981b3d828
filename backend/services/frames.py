import cv2
import numpy as np


class InvalidImage(ValueError):
    pass


def decode_qr_from_image(data: bytes) -> str | None:
    """Text of the first QR code found in a JPEG/PNG frame, or None."""
    img_array = np.frombuffer(data, np.uint8)
    frame = cv2.imdecode(img_array, cv2.IMREAD_COLOR)
    if frame is None:
        raise InvalidImage("Invalid image data.")

    detector = cv2.QRCodeDetector()
    text, points, _ = detector.detectAndDecode(frame)
    if points is None or not text:
        # retry on grayscale
        gray = cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
        text, points, _ = detector.detectAndDecode(gray)

    text = (text or "").strip()
    return text or None
