import argparse
import asyncio
import dataclasses
import sys
from pathlib import Path
from typing import Optional

from pomolight.adapters.console_menu import ConsoleMenu
from pomolight.adapters.dummy_light import DummyLight
from pomolight.adapters.esp32_adapters.esp32_adapter import Connection, Esp32Light
from pomolight.config import DEBUG_WORK_DURATION, DEFAULT_WORK_DURATION, Settings
from pomolight.core.app import ADD_MEETING, REMOVE_MEETING, PomodoroApp
from pomolight.core.clock import Clock
from pomolight.core.lights import HEADER_COLORS, LightController
from pomolight.core.persistence import DebouncedWriter, load_state
from pomolight.ports.menu_port import MenuOption, MenuPort
from pomolight.utils import custom_exception as ce
from pomolight.utils.logging_handler import setup_logger
from pomolight.utils.time_conversions import format_time

logger = setup_logger(__name__)

TICK_SECONDS = 1.0


async def tick_loop(app: PomodoroApp, interval: float = TICK_SECONDS):
    while not app.done:
        await app.tick()
        await asyncio.sleep(interval)


async def input_loop(app: PomodoroApp, menu: MenuPort):
    while not app.done:
        token = await menu.choose(
            app.commands(),
            header=app.status_line(),
            color=HEADER_COLORS.get(app.session.phase),
        )
        if token is None:
            menu.show("Unknown choice.")
        elif token == ADD_MEETING:
            await add_meeting_prompt(app, menu)
        elif token == REMOVE_MEETING:
            await remove_meeting_prompt(app, menu)
        elif not await app.handle_command(token):
            menu.show("That is not available right now.")


async def add_meeting_prompt(app: PomodoroApp, menu: MenuPort):
    """Ask for HHMM until a valid time is given or the answer is empty."""
    while True:
        text = await menu.ask("Meeting time (HHMM, empty to cancel)")
        if not text:
            return
        try:
            timestamp = app.add_meeting(text)
        except ce.MeetingInputError as e:
            menu.show(str(e))
            continue
        menu.show(f"Meeting added at {format_time(app.clock.to_datetime(timestamp))}.")
        return


async def remove_meeting_prompt(app: PomodoroApp, menu: MenuPort):
    options = [
        MenuOption(str(meeting), format_time(app.clock.to_datetime(meeting)))
        for meeting in app.scheduler.meetings
    ]
    token = await menu.choose(options, header="Remove which meeting?")
    if token is not None:
        app.remove_meeting(int(token))


async def run(settings: Settings, menu: Optional[MenuPort] = None, clock: Optional[Clock] = None) -> int:
    """Run until the user exits. Returns the process exit code."""
    clock = clock or Clock(settings.timezone)
    try:
        state = load_state(settings.state_path, strict=settings.strict)
    except ce.PersistenceReadError as e:
        logger.error(f"{e}")
        return 1

    connection = None
    if settings.no_device:
        light = DummyLight()
    else:
        connection = Connection(settings.esp32_host)
        try:
            await connection.connect()
        except ce.DeviceDisconnected as e:
            logger.error(f"{e}. Use --no-device to run without the light.")
            return 1
        light = Esp32Light(connection)

    writer = DebouncedWriter(settings.state_path, settings.debounce_seconds)
    app = PomodoroApp.from_state(
        state, clock, LightController(light, settings.pulse_rate_ms), settings, writer
    )
    ticker = asyncio.create_task(tick_loop(app))
    try:
        await input_loop(app, menu or ConsoleMenu())
    finally:
        ticker.cancel()
        try:
            await ticker
        except asyncio.CancelledError:
            pass
        await app.shutdown()
        if connection is not None:
            await light.close()
    logger.info("Bye.")
    return 0


def parse_args(argv=None, defaults: Optional[Settings] = None) -> Settings:
    """Command-line flags layered over the environment settings."""
    defaults = defaults or Settings.from_env()
    parser = argparse.ArgumentParser(description="Pomodoro timer with a notification light.")
    parser.add_argument("--work", type=float, default=None, help="work minutes")
    parser.add_argument("--break", dest="break_", type=float, default=None, help="break minutes")
    parser.add_argument("--debug", action="store_true", help="one-second minutes")
    parser.add_argument("--state", type=Path, default=None, help="state file path")
    parser.add_argument("--timezone", type=str, default=None)
    parser.add_argument("--esp32-host", type=str, default=None)
    parser.add_argument("--no-device", action="store_true", help="run without the light")
    parser.add_argument("--strict", action="store_true", help="fail on a corrupt state file")
    parsed = parser.parse_args(argv)

    settings = dataclasses.replace(
        defaults,
        debug=defaults.debug or parsed.debug,
        no_device=defaults.no_device or parsed.no_device,
        strict=defaults.strict or parsed.strict,
    )
    if parsed.debug and parsed.work is None and defaults.work_duration == DEFAULT_WORK_DURATION:
        settings.work_duration = DEBUG_WORK_DURATION
    if parsed.work is not None:
        settings.work_duration = parsed.work
    if parsed.break_ is not None:
        settings.break_duration = parsed.break_
    if parsed.state is not None:
        settings.state_path = parsed.state.expanduser()
    if parsed.timezone:
        settings.timezone = parsed.timezone
    if parsed.esp32_host:
        settings.esp32_host = parsed.esp32_host
    return settings


def main() -> None:
    settings = parse_args()
    logger.info("=" * 50)
    try:
        code = asyncio.run(run(settings))
    except KeyboardInterrupt:
        logger.info("Exiting.")
        code = 0
    sys.exit(code)


if __name__ == "__main__":
    main()
