"""
Interactive front end for a CompareSession.

Each command maps to one button of the comparison page: upload a reference
image, capture the current webcam frame, compare, reset.
"""

import cmd
import logging
import shlex

from facecompare.session import LOADING_MODELS, CompareSession

logger = logging.getLogger(__name__)


class CompareShell(cmd.Cmd):
    intro = (
        "Face comparison shell. Commands: upload PATH, capture, compare, reset, "
        "status, show reference|captured, quit"
    )

    def __init__(self, session: CompareSession, stdin=None, stdout=None):
        super().__init__(stdin=stdin, stdout=stdout)
        if stdin is not None:
            self.use_rawinput = False
        self.session = session

    @property
    def prompt(self) -> str:
        return f"facecompare [{self.session.phase.value}]> "

    def _say(self, text: str) -> None:
        self.stdout.write(text + "\n")

    def _show_message(self) -> None:
        if self.session.message:
            self._say(self.session.message)

    def _require_models(self) -> bool:
        if self.session.loading:
            self._say(LOADING_MODELS)
            return False
        return True

    def emptyline(self) -> bool:
        return False

    def default(self, line: str) -> None:
        self._say(f"Unknown command: {line.split()[0]}")

    def do_upload(self, arg: str) -> None:
        """upload PATH -- set the reference image"""
        try:
            args = shlex.split(arg)
        except ValueError as e:
            self._say(f"Usage: upload PATH ({e})")
            return
        if len(args) != 1:
            self._say("Usage: upload PATH")
            return
        if not self._require_models():
            return
        if not self.session.can_upload:
            self._say("Upload is disabled while another action is running")
            return
        if self.session.upload_reference(args[0]):
            self._say(f"Reference face detected in {args[0]}")
        self._show_message()

    def do_capture(self, arg: str) -> None:
        """capture -- grab the current webcam frame"""
        if not self._require_models():
            return
        if not self.session.can_capture:
            self._say("Capture is disabled while another action is running")
            return
        if self.session.capture_frame():
            width, height = self.session.captured.size
            self._say(f"Captured face detected ({width}x{height})")
        self._show_message()

    def do_compare(self, arg: str) -> None:
        """compare -- compare the reference and captured faces"""
        self.session.compare()
        self._show_message()

    def do_reset(self, arg: str) -> None:
        """reset -- clear both images and the result"""
        self.session.reset()
        self._say("Cleared")

    def do_status(self, arg: str) -> None:
        """status -- show the session state"""
        for key, value in self.session.status().items():
            self._say(f"{key}: {value}")

    def do_show(self, arg: str) -> None:
        """show reference|captured -- open the image preview"""
        which = arg.strip()
        if which not in ("reference", "captured"):
            self._say("Usage: show reference|captured")
            return
        held = self.session.reference if which == "reference" else self.session.captured
        if held is None:
            self._say(f"No {which} image")
            return
        held.image.show(title=f"{which.capitalize()} Image")

    def do_quit(self, arg: str) -> bool:
        """quit -- leave the shell"""
        return True

    do_exit = do_quit

    def do_EOF(self, arg: str) -> bool:
        self._say("")
        return True
