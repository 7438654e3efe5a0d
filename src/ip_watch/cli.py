"""CLI entry point for ip-watch."""

# --- Standard library imports ---
import logging
from pathlib import Path

# --- Third-party imports ---
import click

# --- Project imports ---
from . import scheduler
from .lock import RunLock
from .agent import IPWatcher, enabled_families
from .paths import StoragePaths
from .resolver import AddressFamily, resolve
from .telegram import TelegramNotifier
from .sanity import check_runtime
from .logger import get_logger, setup_logging
from .errors import IPWatchError
from .config import (
    Config,
    ConfigStore,
    DEFAULT_HOME,
    Settings,
    format_flag,
    KEY_TELEGRAM_ENABLE,
    KEY_TELEGRAM_BOT_TOKEN,
    KEY_TELEGRAM_CHAT_ID,
    KEY_ENABLE_IPV4,
    KEY_ENABLE_IPV6,
)


logger = get_logger("cli")

# Family selection menu: choice → (IPv4, IPv6)
FAMILY_MODES = {
    "1": (True, False),
    "2": (False, True),
    "3": (True, True),
}


def prompt_settings(current: Settings) -> dict[str, str]:
    """
    Ask for notification and family settings.

    Returns the config keys to write, in write order. Declining
    notifications clears the stored credentials.
    """
    click.echo("========== Telegram notification setup ==========")
    click.echo(
        f"Only touches: {KEY_TELEGRAM_ENABLE} / {KEY_TELEGRAM_BOT_TOKEN} / "
        f"{KEY_TELEGRAM_CHAT_ID} / {KEY_ENABLE_IPV4} / {KEY_ENABLE_IPV6}"
    )
    click.echo("")

    enable = click.prompt(
        "Enable Telegram notifications? [1=yes, 0=no]",
        type=click.Choice(["0", "1"]),
        default="0",
        show_choices=False,
    )

    updates: dict[str, str] = {}
    if enable == "1":
        token = click.prompt(
            "Bot token",
            default=current.bot_token or None,
            show_default=False,
        )
        chat_id = click.prompt(
            "Chat ID / group ID",
            default=current.chat_id or None,
        )
        updates[KEY_TELEGRAM_ENABLE] = format_flag(True)
        updates[KEY_TELEGRAM_BOT_TOKEN] = token.strip()
        updates[KEY_TELEGRAM_CHAT_ID] = chat_id.strip()
    else:
        updates[KEY_TELEGRAM_ENABLE] = format_flag(False)
        updates[KEY_TELEGRAM_BOT_TOKEN] = ""
        updates[KEY_TELEGRAM_CHAT_ID] = ""

    click.echo("")
    click.echo("Address families to monitor:")
    click.echo("1) IPv4 only")
    click.echo("2) IPv6 only")
    click.echo("3) IPv4 + IPv6")
    mode = click.prompt(
        "Select [1/2/3]",
        type=click.Choice(list(FAMILY_MODES)),
        default="1",
        show_choices=False,
    )
    monitor_ipv4, monitor_ipv6 = FAMILY_MODES[mode]
    updates[KEY_ENABLE_IPV4] = format_flag(monitor_ipv4)
    updates[KEY_ENABLE_IPV6] = format_flag(monitor_ipv6)
    return updates

def _resolve_status(family: AddressFamily, enabled: bool) -> str:
    if not enabled:
        return "(disabled)"
    return resolve(family) or f"(get {family.label.lower()} fail)"

# --- Actions ---
def do_run(paths: StoragePaths) -> int:
    outcome = IPWatcher(paths).run_once()
    logger.info(f"{outcome.emoji} Run finished: {outcome.label}")
    return 0

def do_configure(paths: StoragePaths) -> int:
    store = ConfigStore(paths.config_file)
    updates = prompt_settings(store.load())

    # Prompts happen outside the lock; only the write is serialized with runs
    check_runtime(paths)
    with RunLock(paths.lock_dir):
        for key, value in updates.items():
            store.set_key(key, value)

    logger.info(f"Configuration written: {paths.config_file}")
    return 0

def do_telegram_test(paths: StoragePaths) -> int:
    check_runtime(paths)
    settings = ConfigStore(paths.config_file).load()
    notifier = TelegramNotifier(settings)

    if not notifier.is_ready:
        logger.error("Telegram is disabled or incompletely configured")
        return 1

    families = enabled_families(settings)
    delivered = notifier.send_test(
        _resolve_status(AddressFamily.IPV4, AddressFamily.IPV4 in families),
        _resolve_status(AddressFamily.IPV6, AddressFamily.IPV6 in families),
    )
    if delivered:
        logger.info("Telegram test message sent")
        return 0

    logger.error("Telegram test message failed")
    return 1

def do_install_cron(paths: StoragePaths) -> int:
    # cron starts without IPWATCH_HOME, so anything but the default is passed along
    home = paths.base_dir if paths.base_dir != DEFAULT_HOME else None
    scheduler.install(scheduler.select_backend(), scheduler.cron_line(home=home))
    return 0

def do_uninstall_cron(paths: StoragePaths) -> int:
    scheduler.uninstall(scheduler.select_backend())
    return 0

def do_show_paths(paths: StoragePaths) -> int:
    click.echo(f"Config file: {paths.config_file}")
    click.echo(f"Cache file:  {paths.cache_file} (last detected IPv4/IPv6)")
    return 0

ACTIONS = {
    "run": do_run,
    "tg_config": do_configure,
    "telegram_test": do_telegram_test,
    "install_cron": do_install_cron,
    "uninstall_cron": do_uninstall_cron,
    "show_paths": do_show_paths,
}


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--run", is_flag=True,
              help="Run one check; notify if the public IP changed.")
@click.option("--tg-config", "--telegram-config", "tg_config", is_flag=True,
              help="Interactively configure Telegram and IPv4/IPv6 monitoring.")
@click.option("--telegram-test", is_flag=True,
              help="Send a Telegram test message.")
@click.option("--install-cron", is_flag=True,
              help="Install a cron entry running --run every minute.")
@click.option("--uninstall-cron", is_flag=True,
              help="Remove the cron entry.")
@click.option("--show-paths", is_flag=True,
              help="Show config/cache file locations.")
@click.option(
    "--home",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Storage directory (default: $IPWATCH_HOME or ~/ipwatch).",
)
@click.pass_context
def main(ctx: click.Context, home: Path | None, **flags: bool) -> None:
    """Public IP change detector with Telegram notifications."""
    selected = [name for name in ACTIONS if flags.get(name)]
    if not selected:
        click.echo(ctx.get_help())
        return
    if len(selected) > 1:
        raise click.UsageError("Choose only one action at a time.")

    setup_logging(
        level=getattr(logging, Config.LOG_LEVEL, logging.INFO),
        log_file=Config.LOG_FILE,
    )
    paths = StoragePaths.from_base(home or Config.BASE_DIR)

    try:
        code = ACTIONS[selected[0]](paths)
    except IPWatchError as e:
        logger.error(str(e))
        code = 1

    ctx.exit(code)
