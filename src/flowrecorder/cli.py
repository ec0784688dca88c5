"""Command line entry point for flow-recorder."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import signal
import sys
import uuid
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple

from pydantic import ValidationError

from flowrecorder.adapters import InMemoryCaptureProvider, load_provider
from flowrecorder.config import RecorderConfig, load_recorder_config
from flowrecorder.domains.flow import Flow, FlowSynthesizer, parse_flow_document
from flowrecorder.domains.recording import (
    ActionKind,
    CaptureProviderProtocol,
    ListenerRegistry,
    RawStep,
    RecorderError,
    RecorderErrorOccurred,
    SessionController,
    StepDecodeError,
    StepRecorded,
)

logger = logging.getLogger(__name__)

FLOW_FILENAME = "recorded-flow.json"
STEPS_FILENAME = "recorded-steps.json"


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def _truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


def describe_step(step: RawStep) -> str:
    """One-line, human readable description of a captured step."""
    target = step.target_descriptor.display_name
    app = step.app_info.name or "unknown app"
    if step.action == ActionKind.CLICK:
        return f"Click: {target} in {app}"
    if step.action == ActionKind.TYPE:
        return f'Type: "{_truncate(step.text or "", 20)}" in {target}'
    return f"Drag: {target} in {app}"


def format_flow_summary(flow: Flow) -> List[str]:
    lines = [
        f"Name: {flow.name}",
        f"Version: {flow.version}",
        f"Variables: {len(flow.variables)}",
        f"Steps: {flow.step_count}",
    ]
    for index, step in enumerate(flow.steps, start=1):
        line = f"{index}. {step.type.value}"
        if step.selector:
            line += f" -> {step.selector}"
        if step.text:
            line += f' (text: "{_truncate(step.text, 30)}")'
        if step.url:
            line += f" (url: {step.url})"
        lines.append(line)
    return lines


# ---------------------------------------------------------------------------
# File helpers
# ---------------------------------------------------------------------------


def load_steps_file(path: Path) -> List[RawStep]:
    """Read raw steps saved as a JSON list (or ``{"steps": [...]}``)."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("steps", [])
    if not isinstance(data, list):
        raise StepDecodeError(f"{path} does not contain a list of steps", data)
    return [RawStep.from_dict(item) for item in data]


def _write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")


def _emit_flow(flow: Flow, output: Optional[Path]) -> None:
    if output is None:
        print(json.dumps(flow.to_dict(), indent=2))
        return
    _write_json(output, flow.to_dict())
    logger.info("Flow saved to %s", output)


# ---------------------------------------------------------------------------
# Recording sessions
# ---------------------------------------------------------------------------


def _build_listeners() -> ListenerRegistry:
    registry = ListenerRegistry()
    registry.subscribe(lambda e: logger.info(describe_step(e.step)), StepRecorded)
    registry.subscribe(
        lambda e: logger.error("Recording error: %s", e.message),
        RecorderErrorOccurred,
    )
    return registry


async def _wait_for_stop(duration: Optional[float]) -> None:
    stop_requested = asyncio.Event()
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, stop_requested.set)
    except (NotImplementedError, RuntimeError):
        logger.debug("Signal handlers unavailable; relying on --duration")
    try:
        if duration is not None:
            try:
                await asyncio.wait_for(stop_requested.wait(), timeout=duration)
            except asyncio.TimeoutError:
                pass
        else:
            await stop_requested.wait()
    finally:
        try:
            loop.remove_signal_handler(signal.SIGINT)
        except (NotImplementedError, RuntimeError):
            pass


async def record_session(
    provider: CaptureProviderProtocol,
    config: RecorderConfig,
    *,
    duration: Optional[float] = None,
) -> Tuple[List[RawStep], Flow]:
    """Record until Ctrl+C (or *duration* seconds) and synthesize a flow."""
    controller = SessionController(
        provider,
        event_publisher=_build_listeners(),
        poll_interval=config.poll_interval,
    )
    await controller.start(str(uuid.uuid4()))
    logger.info("Interact with any application; press Ctrl+C to stop recording")
    try:
        await _wait_for_stop(duration)
    finally:
        steps = await controller.stop()
    flow = FlowSynthesizer().convert(steps, config.flow_name)
    return steps, flow


async def replay_steps(
    steps: Sequence[RawStep], config: RecorderConfig
) -> Tuple[List[RawStep], Flow]:
    """Run a full session against an in-memory provider fed with *steps*."""
    provider = InMemoryCaptureProvider()
    controller = SessionController(
        provider,
        event_publisher=_build_listeners(),
        poll_interval=config.poll_interval,
    )
    await controller.start(f"replay-{uuid.uuid4()}")
    provider.push(*steps)
    await asyncio.sleep(config.poll_interval.seconds * 2)
    recorded = await controller.stop()
    flow = FlowSynthesizer().convert(recorded, config.flow_name)
    return recorded, flow


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _cmd_convert(args: argparse.Namespace, config: RecorderConfig) -> int:
    steps = load_steps_file(args.steps)
    flow = FlowSynthesizer().convert(steps, config.flow_name)
    _emit_flow(flow, args.output)
    return 0


def _cmd_validate(args: argparse.Namespace, config: RecorderConfig) -> int:
    data = json.loads(Path(args.flow).read_text(encoding="utf-8"))
    flow = parse_flow_document(data)
    for line in format_flow_summary(flow):
        logger.info(line)
    logger.info("%s is a valid flow document", args.flow)
    return 0


def _cmd_record(args: argparse.Namespace, config: RecorderConfig) -> int:
    if not config.provider:
        logger.error(
            "No capture provider configured. Pass --provider or set FLOWREC_PROVIDER."
        )
        return 1
    try:
        provider = load_provider(config.provider)
    except (ImportError, AttributeError, TypeError, ValueError) as exc:
        logger.error("Cannot load capture provider %s: %s", config.provider, exc)
        return 1
    try:
        steps, flow = asyncio.run(
            record_session(provider, config, duration=args.duration)
        )
    except RecorderError:
        raise
    except Exception as exc:
        logger.error("Recording failed: %s", exc, exc_info=True)
        return 1
    if not steps:
        logger.info("No steps recorded")
        return 0

    _write_json(config.output_dir / FLOW_FILENAME, flow.to_dict())
    _write_json(config.output_dir / STEPS_FILENAME, [s.to_dict() for s in steps])
    logger.info("Flow saved to %s", config.output_dir / FLOW_FILENAME)
    logger.info("Raw steps saved to %s", config.output_dir / STEPS_FILENAME)
    for line in format_flow_summary(flow):
        logger.info(line)
    return 0


def _cmd_replay(args: argparse.Namespace, config: RecorderConfig) -> int:
    steps = load_steps_file(args.steps)
    _, flow = asyncio.run(replay_steps(steps, config))
    _emit_flow(flow, args.output)
    return 0


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flow-recorder",
        description="Record desktop UI actions and synthesize replayable flows.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (default: FLOWREC_LOG_LEVEL or INFO).",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    convert = sub.add_parser("convert", help="Synthesize a flow from saved raw steps.")
    convert.add_argument("steps", type=Path, help="JSON file with recorded steps.")
    convert.add_argument("-n", "--name", default=None, help="Flow name.")
    convert.add_argument("-o", "--output", type=Path, default=None, help="Output file.")
    convert.set_defaults(handler=_cmd_convert)

    validate = sub.add_parser("validate", help="Validate a flow document.")
    validate.add_argument("flow", type=Path, help="Flow JSON file.")
    validate.set_defaults(handler=_cmd_validate)

    record = sub.add_parser("record", help="Record a session with a capture provider.")
    record.add_argument(
        "--provider",
        default=None,
        help="Capture provider as 'package.module:factory' (default: FLOWREC_PROVIDER).",
    )
    record.add_argument("-n", "--name", default=None, help="Flow name.")
    record.add_argument("--output-dir", type=Path, default=None)
    record.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Stop automatically after this many seconds.",
    )
    record.add_argument("--poll-interval-ms", type=int, default=None)
    record.set_defaults(handler=_cmd_record)

    replay = sub.add_parser(
        "replay", help="Run saved steps through a full in-memory recording session."
    )
    replay.add_argument("steps", type=Path, help="JSON file with recorded steps.")
    replay.add_argument("-n", "--name", default=None, help="Flow name.")
    replay.add_argument("-o", "--output", type=Path, default=None, help="Output file.")
    replay.set_defaults(handler=_cmd_replay)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = _build_arg_parser()
    args = parser.parse_args(argv)

    try:
        config = load_recorder_config(
            poll_interval_ms=getattr(args, "poll_interval_ms", None),
            flow_name=getattr(args, "name", None),
            output_dir=getattr(args, "output_dir", None),
            provider=getattr(args, "provider", None),
            log_level=args.log_level,
        )
    except ValueError as exc:
        logging.basicConfig(level=logging.INFO)
        logger.error("Invalid configuration: %s", exc)
        return 1

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        return args.handler(args, config)
    except RecorderError as exc:
        logger.error("%s", exc.message)
    except ValidationError as exc:
        logger.error("Invalid flow document: %s", exc)
    except (StepDecodeError, ValueError, OSError) as exc:
        logger.error("%s", exc)
    return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
