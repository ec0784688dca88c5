"""MCP server exposing the recording engine as tools."""

import argparse
import logging
import uuid
from typing import Any, Dict, List, Optional

from fastmcp import FastMCP

from flowrecorder.adapters import InMemoryCaptureProvider, load_provider
from flowrecorder.config import RecorderConfig, load_recorder_config
from flowrecorder.domains.flow import FlowSynthesizer
from flowrecorder.domains.recording import (
    CaptureProviderProtocol,
    EventCollector,
    ListenerRegistry,
    RawStep,
    RecorderError,
    SessionController,
    StepDecodeError,
)

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "Flow Recorder MCP Server",
    instructions=(
        "Record desktop UI actions with start_recording/stop_recording and "
        "receive a replayable flow document."
    ),
)

_config: Optional[RecorderConfig] = None
_controller: Optional[SessionController] = None
_events = EventCollector(max_events=500)
_synthesizer = FlowSynthesizer()


def _get_config() -> RecorderConfig:
    global _config
    if _config is None:
        _config = load_recorder_config()
    return _config


def _resolve_provider(config: RecorderConfig) -> CaptureProviderProtocol:
    if config.provider:
        return load_provider(config.provider)
    logger.warning(
        "FLOWREC_PROVIDER not set; using an in-memory capture provider "
        "(no real UI events will be captured)"
    )
    return InMemoryCaptureProvider()


def _build_controller(provider: CaptureProviderProtocol) -> SessionController:
    registry = ListenerRegistry()
    registry.subscribe(_events.publish)
    return SessionController(
        provider,
        event_publisher=registry,
        poll_interval=_get_config().poll_interval,
    )


def _get_controller() -> SessionController:
    """Get or initialize the session controller singleton."""
    global _controller
    if _controller is None:
        _controller = _build_controller(_resolve_provider(_get_config()))
    return _controller


def configure(
    provider: CaptureProviderProtocol, config: Optional[RecorderConfig] = None
) -> SessionController:
    """Replace the server's provider (and optionally its config).

    Raises:
        RuntimeError: If a recording session is still active.
    """
    global _config, _controller
    if _controller is not None and _controller.has_session:
        raise RuntimeError("Cannot reconfigure while a recording session is active")
    if config is not None:
        _config = config
    _events.clear()
    _controller = _build_controller(provider)
    return _controller


def _error(exc: Exception, **extra: Any) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "success": False,
        "error": getattr(exc, "message", str(exc)),
        "reason": getattr(exc, "reason", type(exc).__name__),
    }
    payload.update(extra)
    return payload


@mcp.tool(
    name="start_recording",
    description="Start capturing UI actions. Only one recording session may be active.",
)
async def start_recording(session_id: Optional[str] = None) -> Dict[str, Any]:
    session_id = session_id or str(uuid.uuid4())
    try:
        await _get_controller().start(session_id)
    except RecorderError as exc:
        return _error(exc, session_id=session_id)
    except Exception as exc:
        logger.exception("start_recording failed for session %s", session_id)
        return _error(exc, session_id=session_id)
    return {"success": True, "session_id": session_id, "status": "recording"}


@mcp.tool(
    name="stop_recording",
    description="Stop the active recording and return the captured steps and synthesized flow.",
)
async def stop_recording(flow_name: Optional[str] = None) -> Dict[str, Any]:
    try:
        controller = _get_controller()
    except Exception as exc:
        logger.exception("Capture provider could not be loaded")
        return _error(exc)
    session_id = controller.current_session_id
    try:
        steps = await controller.stop()
    except RecorderError as exc:
        return _error(exc)
    except Exception as exc:
        logger.exception("stop_recording failed for session %s", session_id)
        return _error(exc, session_id=session_id)
    flow = _synthesizer.convert(steps, flow_name or _get_config().flow_name)
    return {
        "success": True,
        "session_id": session_id,
        "status": "stopped",
        "step_count": len(steps),
        "steps": [s.to_dict() for s in steps],
        "flow": flow.to_dict(),
    }


@mcp.tool(
    name="recording_status",
    description="Report whether a recording session is active.",
)
async def recording_status() -> Dict[str, Any]:
    try:
        return {"success": True, **_get_controller().to_dict()}
    except Exception as exc:
        logger.exception("recording_status failed")
        return _error(exc)


@mcp.tool(
    name="convert_steps",
    description="Synthesize a flow document from previously recorded raw steps.",
)
async def convert_steps(
    steps: List[Dict[str, Any]], flow_name: Optional[str] = None
) -> Dict[str, Any]:
    try:
        raw_steps = [RawStep.from_dict(item) for item in steps]
    except StepDecodeError as exc:
        return _error(exc)
    flow = _synthesizer.convert(raw_steps, flow_name or _get_config().flow_name)
    return {"success": True, "flow": flow.to_dict()}


@mcp.tool(
    name="recent_events",
    description="Return the most recent recorder events (steps, starts, stops, errors).",
)
async def recent_events(limit: int = 20) -> Dict[str, Any]:
    events = _events.get_recent(max(1, limit))
    return {"success": True, "events": [e.to_dict() for e in events]}


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Flow recorder MCP server.")
    parser.add_argument(
        "--transport",
        choices=["stdio", "http", "sse"],
        default=None,
        help="MCP transport (default: stdio).",
    )
    parser.add_argument("--host", default=None)
    parser.add_argument("--port", type=int, default=None)
    parser.add_argument("--log-level", default=None)
    return parser


def main(argv: List[str] | None = None) -> None:
    """Start the flow recorder MCP server."""

    parser = _build_arg_parser()
    args = parser.parse_args(argv)

    config = load_recorder_config(log_level=args.log_level)
    logging.basicConfig(level=getattr(logging, config.log_level, logging.INFO))

    run_kwargs: Dict[str, Any] = {}
    transport = args.transport or "stdio"
    run_kwargs["transport"] = transport
    if transport != "stdio":
        if args.host:
            run_kwargs["host"] = args.host
        if args.port:
            run_kwargs["port"] = args.port

    logger.info("Starting flow recorder MCP server (transport: %s)", transport)
    try:
        mcp.run(**run_kwargs)
    except KeyboardInterrupt:
        logger.info("Flow recorder MCP server interrupted by user")


if __name__ == "__main__":  # pragma: no cover
    main()
