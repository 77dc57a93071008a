"""facecompare MCP Server — the comparison page as MCP tools.

Exposes the four user actions (upload a reference image, capture a webcam
frame, compare, reset) plus a status query, so any MCP-capable client can
drive a face comparison session running on this machine.

Configuration via environment variables:
    FACECOMPARE_CONFIG   Path to a YAML config file (default: built-in defaults)
    FACECOMPARE_*        Individual setting overrides (see facecompare.config)

Usage:
    facecompare-mcp            # stdio transport
    python -m facecompare.mcp_server
"""

from __future__ import annotations

import logging
import os
import threading

from mcp.server.fastmcp import FastMCP

from facecompare.config import Settings
from facecompare.session import ACTION_IN_PROGRESS, LOADING_MODELS, CompareSession

logger = logging.getLogger(__name__)

mcp = FastMCP("facecompare", instructions=(
    "Face comparison session. Upload a reference photo with upload_reference(), "
    "grab a webcam frame with capture_frame(), then call compare_faces() for a "
    "similarity score. reset_session() clears everything."
))

_session: CompareSession | None = None
_session_lock = threading.Lock()


# ---------------------------------------------------------------------------
# Session helpers
# ---------------------------------------------------------------------------

def _load_settings() -> Settings:
    path = os.environ.get("FACECOMPARE_CONFIG", "")
    if path:
        return Settings.from_yaml(path)
    return Settings()


def get_session() -> CompareSession:
    """Return the process-wide session, creating and starting it on first use."""
    global _session
    if _session is None:
        with _session_lock:
            if _session is None:
                session = CompareSession.from_settings(_load_settings())
                session.start()
                _session = session
    return _session


def _not_ready(session: CompareSession) -> str | None:
    """Return a message if the models are unavailable, else None."""
    if session.loading:
        detail = f"\n{session.model_error}" if session.model_error else ""
        return f"⏳ {LOADING_MODELS}{detail}"
    return None


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------

@mcp.tool()
def upload_reference(path: str) -> str:
    """Set the reference photo for the comparison.

    Args:
        path: Local path of the image file (JPEG, PNG, ...).
    """
    session = get_session()
    if msg := _not_ready(session):
        return msg
    if not os.path.isfile(path):
        return f"❌ File not found: {path}"
    if session.upload_reference(path):
        width, height = session.reference.size
        return f"✅ Reference face detected in {os.path.basename(path)} ({width}x{height})"
    return f"❌ {session.message or ACTION_IN_PROGRESS}"


@mcp.tool()
def capture_frame() -> str:
    """Capture the current webcam frame as the image to compare."""
    session = get_session()
    if msg := _not_ready(session):
        return msg
    if session.capture_frame():
        width, height = session.captured.size
        return f"📸 Captured face detected ({width}x{height})"
    return f"❌ {session.message or ACTION_IN_PROGRESS}"


@mcp.tool()
def compare_faces() -> str:
    """Compare the reference photo with the captured frame.

    Returns the similarity percentage and whether the faces match.
    """
    session = get_session()
    session.compare()
    return session.message


@mcp.tool()
def reset_session() -> str:
    """Clear both images, both face descriptors and the last result."""
    get_session().reset()
    return "🔄 Session cleared"


@mcp.tool()
def get_status() -> str:
    """Show what is loaded and which actions are currently available."""
    status = get_session().status()
    lines = [f"  • {key}: {value}" for key, value in status.items() if key != "message"]
    summary = "📊 Session status:\n" + "\n".join(lines)
    if status["message"]:
        summary += f"\n\n{status['message']}"
    return summary


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
