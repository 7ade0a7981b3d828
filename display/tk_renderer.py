import logging
import tkinter as tk

from PIL import ImageTk

from display.config import WAITING_MESSAGE
from display.identity import DisplayedIdentity
from display.poller import Poller
from display.portraits import PortraitLoader

logger = logging.getLogger(__name__)

BG = "#f3f4f6"
CARD_BG = "#ffffff"


class TkRenderer:
    """Fullscreen kiosk window: one identity card, or the waiting message."""

    def __init__(self, root: tk.Tk | None = None, *, fullscreen: bool = True):
        self.root = root or tk.Tk()
        self.root.title("Rollcall Display")
        self.root.configure(bg=BG)
        if fullscreen:
            self.root.attributes("-fullscreen", True)

        self.card = tk.Frame(self.root, bg=CARD_BG, padx=64, pady=64)
        self.portrait = tk.Label(self.card, bg=CARD_BG)
        self.portrait.pack(side="left", padx=(0, 48))
        self.text_frame = tk.Frame(self.card, bg=CARD_BG)
        self.text_frame.pack(side="left", fill="both", expand=True)
        self.name_label = tk.Label(self.text_frame, font=("Helvetica", 64, "bold"), bg=CARD_BG, anchor="w")
        self.position_label = tk.Label(self.text_frame, font=("Helvetica", 36), fg="#3f3f46", bg=CARD_BG, anchor="w")
        self.company_label = tk.Label(self.text_frame, font=("Helvetica", 28), fg="#52525b", bg=CARD_BG, anchor="w")
        for label in (self.name_label, self.position_label, self.company_label):
            label.pack(fill="x")

        self.waiting_label = tk.Label(self.root, text=WAITING_MESSAGE, font=("Helvetica", 18), fg="#6b7280", bg=BG)
        self.reset_button = tk.Button(self.root, text="Reset / Wait for Next Scan")
        self.portraits = PortraitLoader()
        self._photo: ImageTk.PhotoImage | None = None
        self.clear()

    def _hide_portrait(self) -> None:
        self._photo = None
        self.portrait.configure(image="")
        self.portrait.pack_forget()

    def apply_ready_portrait(self) -> None:
        image = self.portraits.ready()
        if image is None:
            return
        self._photo = ImageTk.PhotoImage(image)
        self.portrait.configure(image=self._photo)
        self.portrait.pack(side="left", padx=(0, 48), before=self.text_frame)

    def show(self, identity: DisplayedIdentity) -> None:
        self.name_label.configure(text=identity.name)
        self.position_label.configure(text=identity.position)
        self.company_label.configure(text=identity.company)

        # the card shows without a portrait until the loader delivers one
        self._hide_portrait()
        if identity.image_url:
            self.portraits.request(identity.image_url)
        else:
            self.portraits.cancel()

        self.waiting_label.pack_forget()
        self.card.pack(expand=True)
        self.reset_button.pack(pady=32)

    def clear(self) -> None:
        self.portraits.cancel()
        self.card.pack_forget()
        self.reset_button.pack_forget()
        self._hide_portrait()
        self.waiting_label.pack(expand=True)

    def run(self, poller: Poller) -> None:
        """Drive poller cycles from the Tk event loop until the window closes."""
        interval_ms = max(1, int(poller.interval * 1000))

        def cycle():
            if not poller.running:
                return
            try:
                poller.poll_once()
                self.apply_ready_portrait()
            finally:
                self.root.after(interval_ms, cycle)

        def close(_event=None):
            poller.stop()
            self.root.destroy()

        self.reset_button.configure(command=poller.reset)
        self.root.bind("<KeyPress-r>", lambda _e: poller.reset())
        self.root.bind("<Escape>", close)
        self.root.protocol("WM_DELETE_WINDOW", close)

        poller.start()
        self.root.after(0, cycle)
        try:
            self.root.mainloop()
        finally:
            poller.stop()
