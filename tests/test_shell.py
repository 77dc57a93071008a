"""Tests for the interactive shell."""

import io
from unittest.mock import patch

import numpy as np
import pytest

from facecompare.session import CompareSession
from facecompare.shell import CompareShell


def _run(session: CompareSession, commands: str) -> str:
    out = io.StringIO()
    shell = CompareShell(session, stdin=io.StringIO(commands), stdout=out)
    shell.cmdloop(intro="")
    return out.getvalue()


@pytest.fixture
def session(mock_camera) -> CompareSession:
    s = CompareSession(camera=mock_camera)
    with patch("facecompare.session.load_models"):
        s.load_models()
    return s


class TestCommands:
    def test_full_flow(self, session, sample_image_path, reference_descriptor, near_descriptor):
        with patch(
            "facecompare.session.extract_descriptor",
            side_effect=[reference_descriptor, near_descriptor],
        ):
            output = _run(session, f"upload {sample_image_path}\ncapture\ncompare\nquit\n")

        assert f"Reference face detected in {sample_image_path}" in output
        assert "Captured face detected (64x48)" in output
        assert "70.00% similar" in output
        assert "Face Match Found" in output

    def test_compare_without_inputs(self, session):
        output = _run(session, "compare\nquit\n")
        assert "Please ensure both images have detected faces" in output

    def test_upload_usage(self, session):
        output = _run(session, "upload\nquit\n")
        assert "Usage: upload PATH" in output

    def test_upload_unbalanced_quote(self, session):
        output = _run(session, 'upload "my photo.jpg\nstatus\nquit\n')

        assert "Usage: upload PATH" in output
        assert "No closing quotation" in output
        assert "phase: ready" in output

    def test_upload_refused_while_busy(self, session, sample_image_path):
        session.is_processing = True
        with patch("facecompare.session.extract_descriptor") as mock_extract:
            output = _run(session, f"upload {sample_image_path}\nquit\n")

        assert "Upload is disabled while another action is running" in output
        mock_extract.assert_not_called()
        assert session.reference is None

    def test_upload_quoted_path(self, session, temp_dir, reference_descriptor):
        from PIL import Image

        path = temp_dir / "my photo.jpg"
        Image.new("RGB", (20, 20)).save(path)
        with patch("facecompare.session.extract_descriptor", return_value=reference_descriptor):
            output = _run(session, f'upload "{path}"\nquit\n')

        assert "Reference face detected" in output
        assert session.reference.source == str(path)

    def test_no_face_message(self, session, sample_image_path):
        with patch("facecompare.session.extract_descriptor", return_value=None):
            output = _run(session, f"upload {sample_image_path}\nquit\n")

        assert "No face detected in the uploaded image" in output

    def test_reset(self, session, sample_image_path):
        with patch("facecompare.session.extract_descriptor", return_value=np.zeros(128)):
            output = _run(session, f"upload {sample_image_path}\nreset\nquit\n")

        assert "Cleared" in output
        assert session.reference is None

    def test_status(self, session):
        output = _run(session, "status\nquit\n")
        assert "phase: ready" in output
        assert "can_upload: True" in output

    def test_show_missing_image(self, session):
        output = _run(session, "show captured\nshow nothing\nquit\n")
        assert "No captured image" in output
        assert "Usage: show reference|captured" in output

    def test_show_opens_preview(self, session, sample_image_path):
        with patch("facecompare.session.extract_descriptor", return_value=np.zeros(128)):
            _run(session, f"upload {sample_image_path}\nquit\n")

        with patch.object(session.reference.image, "show") as mock_show:
            _run(session, "show reference\nquit\n")

        mock_show.assert_called_once_with(title="Reference Image")

    def test_unknown_command(self, session):
        assert "Unknown command: dance" in _run(session, "dance\nquit\n")

    def test_eof_exits(self, session):
        # No quit command: EOF ends the loop
        _run(session, "status\n")

    def test_prompt_shows_phase(self, session):
        assert CompareShell(session).prompt == "facecompare [ready]> "


class TestLoading:
    def test_actions_blocked_while_loading(self, mock_camera, sample_image_path):
        session = CompareSession(camera=mock_camera)

        output = _run(session, f"upload {sample_image_path}\ncapture\nquit\n")

        assert output.count("Loading face recognition models...") == 2
        mock_camera.read_frame.assert_not_called()
