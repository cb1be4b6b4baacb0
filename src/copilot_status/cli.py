"""Command-line interface for copilot-status."""

import logging
import math
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Optional

import click
import orjson
from rich.console import Console, Group
from rich.live import Live
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from copilot_status import __version__
from copilot_status.services.activity_probe import (
    CopilotType,
    detect_copilot_type,
    make_probe,
)
from copilot_status.services.config_manager import DEFAULTS, ConfigManager
from copilot_status.services.daily_aggregator import SessionProcessor
from copilot_status.services.dashboard import (
    DashboardSnapshot,
    compute_snapshot,
    run_periodic,
)
from copilot_status.services.demo import write_demo_data
from copilot_status.services.exporter import export_stats
from copilot_status.services.tracker import TrackerState, check_for_new_sessions, poll_probe
from copilot_status.services.usage_log import UsageLogStore
from copilot_status.types.sessions import SessionMetrics
from copilot_status.types.usage import DailyStats, UsageEvent
from copilot_status.utils.formatting import (
    cost_style,
    format_duration,
    latency_style,
    metric_style,
    progress_bar,
    scaled_bar,
    success_style,
    truncate,
)
from copilot_status.utils.timestamps import is_valid_date, today_utc

logger = logging.getLogger(__name__)

console = Console()


def setup_logging(debug: bool = False):
    """Setup logging configuration."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _validate_date(ctx, param, value: Optional[str]) -> Optional[str]:
    if value is None or is_valid_date(value):
        return value
    raise click.BadParameter("expected a date in YYYY-MM-DD format")


def _session_dir(config: ConfigManager, override: Optional[Path]) -> Path:
    return override if override is not None else config.get_path("general/sessionDir")


def _fail(message: str, error: Exception):
    console.print(f"\n[bold red]✗ {message}:[/bold red] {error}")
    sys.exit(1)


session_dir_option = click.option(
    "--session-dir",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="Session history directory (default: general/sessionDir setting)",
)


@click.group()
@click.version_option(version=__version__, prog_name="copilot-status")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Settings file (default: ~/.config/copilot-status/copilot-status.ini)",
)
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, config_path: Optional[Path], debug: bool):
    """GitHub Copilot CLI usage tracker and visualizer.

    Reads session transcripts from ~/.copilot/history-session-state and
    reports estimated token usage and cost.
    """
    config = ConfigManager(config_path)
    setup_logging(debug or config.get_bool("advanced/debugLogging"))
    ctx.obj = config


# ---------------------------------------------------------------------------
# stats
# ---------------------------------------------------------------------------

@cli.command()
@click.option("-d", "--date", "date", callback=_validate_date, default=None,
              help="Date to show stats for (YYYY-MM-DD, default: today UTC)")
@click.option("-j", "--json", "as_json", is_flag=True, help="Output in JSON format")
@click.option("-o", "--output", default=None, help="Export JSON data to a file or directory")
@click.option("-v", "--verbose", is_flag=True, help="Show detailed information")
@session_dir_option
@click.pass_obj
def stats(config: ConfigManager, date: Optional[str], as_json: bool, output: Optional[str],
          verbose: bool, session_dir: Optional[Path]):
    """Show usage statistics for one day."""
    date = date or today_utc()
    processor = SessionProcessor(_session_dir(config, session_dir))
    try:
        daily = processor.get_usage_by_date(date)

        if output:
            path = export_stats(daily, output, date)
            if not as_json:
                console.print(f"[green]✓ Data exported to: {path}[/green]")

        if as_json:
            click.echo(orjson.dumps(daily.to_dict(), option=orjson.OPT_INDENT_2).decode())
            return

        console.print(f"\n[cyan]📊 GitHub Copilot Usage Stats for {date}[/cyan]\n")
        if daily.total_prompts == 0:
            console.print("[yellow]⚠  No usage data found for this date[/yellow]")
            console.print(f"[dim]   Make sure Copilot CLI is installed and session data "
                          f"exists in {processor.history_dir}[/dim]")
            return

        console.print(build_overview_table(daily))
        console.print()
        if verbose:
            for table in build_breakdown_tables(daily):
                console.print(table)
                console.print()
        console.print(build_visualization(daily))
    except OSError as e:
        _fail("Error retrieving stats", e)


@cli.command("log-stats")
@click.option("-d", "--date", "date", callback=_validate_date, default=None,
              help="Date to show stats for (YYYY-MM-DD, default: today UTC)")
@click.option("-f", "--file", "log_file", type=click.Path(path_type=Path, dir_okay=False),
              default=None, help="Usage log file (default: tracking/logFile setting)")
@click.option("-j", "--json", "as_json", is_flag=True, help="Output in JSON format")
@click.pass_obj
def log_stats(config: ConfigManager, date: Optional[str], log_file: Optional[Path], as_json: bool):
    """Show statistics from the usage log written by track and demo."""
    date = date or today_utc()
    store = UsageLogStore(log_file or config.get_path("tracking/logFile"))
    try:
        with store:
            daily = store.aggregate(date)
    except OSError as e:
        _fail("Error reading usage log", e)

    if as_json:
        click.echo(orjson.dumps(daily.to_dict(), option=orjson.OPT_INDENT_2).decode())
        return

    console.print(f"\n[cyan]📊 Logged Copilot Usage for {date}[/cyan]\n")
    if daily.total_prompts == 0:
        console.print(f"[yellow]⚠  No usage logged for this date in {store.log_file}[/yellow]")
        return
    console.print(build_overview_table(daily, duration_ms=True))
    console.print()
    for table in build_breakdown_tables(daily):
        console.print(table)
        console.print()


def build_overview_table(daily: DailyStats, duration_ms: bool = False) -> Table:
    seconds = daily.total_duration / 1000 if duration_ms else daily.total_duration
    avg_time = seconds / daily.total_prompts if daily.total_prompts else 0
    cost_per_prompt = daily.total_cost / daily.total_prompts if daily.total_prompts else 0

    table = Table(show_header=False, header_style="cyan")
    table.add_row("📝 Total Prompts", Text(f"{daily.total_prompts:,}", style="green"))
    table.add_row("🎯 Tokens Used", Text(f"{daily.total_tokens:,}", style="yellow"))
    table.add_row("💰 Total Cost", Text(f"${daily.total_cost:.4f}", style="magenta"))
    table.add_row("⚡ Avg Time per Prompt", Text(f"{avg_time:.2f}s", style="blue"))
    table.add_row("💵 Cost per Prompt", Text(f"${cost_per_prompt:.6f}", style="cyan"))
    table.add_row("🔄 Unique Sessions", Text(str(daily.unique_sessions)))
    table.add_row("📊 Avg Prompt Tokens", Text(f"{round(daily.average_prompt_tokens):,}", style="dim"))
    table.add_row("✨ Avg Completion Tokens",
                  Text(f"{round(daily.average_completion_tokens):,}", style="dim"))
    return table


def build_breakdown_tables(daily: DailyStats) -> list[Table]:
    tables = []
    if daily.commands:
        table = Table(title="🛠  Command Usage", header_style="cyan")
        table.add_column("Command")
        table.add_column("Count", justify="right")
        table.add_column("Percentage", justify="right")
        top = sorted(daily.commands.items(), key=lambda kv: kv[1], reverse=True)[:10]
        for command, count in top:
            table.add_row(truncate(command), str(count), f"{count / daily.total_prompts * 100:.1f}%")
        tables.append(table)

    if daily.models:
        table = Table(title="🤖 Model Usage", header_style="cyan")
        table.add_column("Model")
        table.add_column("Requests", justify="right")
        table.add_column("Percentage", justify="right")
        for model, count in sorted(daily.models.items(), key=lambda kv: kv[1], reverse=True):
            table.add_row(model, str(count), f"{count / daily.total_prompts * 100:.1f}%")
        tables.append(table)
    return tables


def build_visualization(daily: DailyStats) -> Group:
    token_bar = scaled_bar(daily.total_tokens, max(50000, daily.total_tokens), 30)
    message_bar = progress_bar(min(100, daily.total_prompts), 20)
    return Group(
        Text("📊 Usage Visualization:", style="cyan"),
        Text.assemble("Tokens: ", token_bar, " ", (f"{daily.total_tokens:,}", "yellow")),
        Text.assemble("Duration: ", format_duration(daily.total_duration)),
        Text.assemble("Messages: ", message_bar, " ", (f"{daily.total_prompts:,}", "green")),
    )


# ---------------------------------------------------------------------------
# dashboard
# ---------------------------------------------------------------------------

@cli.command()
@click.option("-i", "--interval", type=click.IntRange(min=1), default=None,
              help="Refresh interval in seconds (default: dashboard/interval setting)")
@click.option("--compact", is_flag=True, help="Use compact display mode")
@session_dir_option
@click.pass_obj
def dashboard(config: ConfigManager, interval: Optional[int], compact: bool,
              session_dir: Optional[Path]):
    """Live dashboard with real-time usage visualization."""
    interval = interval or config.get_int("dashboard/interval")
    processor = SessionProcessor(_session_dir(config, session_dir))
    thresholds = (config.get_float("costs/warningThreshold"),
                  config.get_float("costs/criticalThreshold"))

    console.print("[cyan]🚀 GitHub Copilot Live Dashboard[/cyan]\n")
    try:
        _print_data_banner(processor)
    except OSError as e:
        _fail("Error reading session directory", e)
    console.print(f"[dim]⏱  Refreshing every {interval}s (Press Ctrl+C to stop)[/dim]\n")

    def render(snapshot: DashboardSnapshot):
        if compact:
            view = render_compact_dashboard(snapshot, thresholds)
        else:
            view = render_full_dashboard(snapshot, thresholds)
        live.update(view, refresh=True)

    live = Live(console=console, auto_refresh=False, transient=False)
    try:
        with live:
            run_periodic(lambda tick: compute_snapshot(processor, tick), render, interval)
    except KeyboardInterrupt:
        pass
    finally:
        console.show_cursor(True)
    console.print("\n[yellow]👋 Dashboard stopped[/yellow]")


def _print_data_banner(processor: SessionProcessor):
    available = processor.get_available_dates()
    today = today_utc()
    if not available:
        console.print("[yellow]⚠  No Copilot session data found[/yellow]")
        console.print("[dim]   Make sure Copilot CLI is installed and has been used[/dim]")
        console.print(f"[dim]   Session data should be in {processor.history_dir}[/dim]\n")
    elif today not in available:
        console.print("[yellow]⚠  No session data found for today[/yellow]")
        console.print(f"[dim]   Available dates: {', '.join(available[-3:])}[/dim]\n")
    else:
        console.print(f"[green]✓ Found session data for today and "
                      f"{len(available) - 1} other dates[/green]\n")


def render_compact_dashboard(snapshot: DashboardSnapshot, thresholds=(5.0, 15.0)) -> Group:
    m, s = snapshot.metrics, snapshot.stats
    return Group(
        Text.assemble(("🤖 GitHub Copilot Dashboard (Compact)", "bold cyan"),
                      (f" #{snapshot.update_count}", "dim")),
        Rule(characters="═"),
        Text.assemble(
            ("⚡ TPM:", "yellow"), f" {m.tokens_per_minute} ",
            ("⏱  Resp:", "blue"), f" {m.average_response_time}ms ",
            ("✓ Success:", "green"), f" {m.success_rate * 100:.1f}% ",
            ("💰 Burn:", "magenta"), f" ${m.cost_burn_rate:.2f}/h",
        ),
        Text.assemble(("🧠 Context: ", "cyan"), progress_bar(m.context_window_usage, 30),
                      (f" {m.context_window_usage:.1f}%", "dim")),
        Text.assemble("📝 Today: ", f"{s.total_prompts} prompts, ",
                      f"{s.total_tokens:,} tokens, ", f"${s.total_cost:.4f}"),
        Rule(characters="─"),
        _footer(snapshot),
    )


def render_full_dashboard(snapshot: DashboardSnapshot, thresholds=(5.0, 15.0)) -> Group:
    m, s = snapshot.metrics, snapshot.stats
    parts = [
        Text.assemble(("🤖 GitHub Copilot Live Dashboard", "bold cyan"),
                      (f" (Update #{snapshot.update_count})", "dim")),
        Rule(characters="═"),
        Text("\n⚡ Real-time Metrics:", style="bold yellow"),
        Text.assemble("  🎯 Tokens/min: ",
                      (str(m.tokens_per_minute), metric_style(m.tokens_per_minute, 1000, 500))),
        Text.assemble("  ⏱  Avg Response: ",
                      (f"{m.average_response_time}ms", latency_style(m.average_response_time))),
        Text.assemble("  ✓ Success Rate: ",
                      (f"{m.success_rate * 100:.1f}%", success_style(m.success_rate))),
        Text.assemble("  💰 Cost Burn Rate: ",
                      (f"${m.cost_burn_rate:.2f}/hour", cost_style(m.cost_burn_rate, *thresholds))),
        Text.assemble("  🧠 Context Usage: ", progress_bar(m.context_window_usage, 40),
                      (f" {m.context_window_usage:.1f}%", "dim")),
        Text("\n📊 Today's Statistics:", style="bold blue"),
    ]
    if s.total_prompts > 0:
        parts.extend([
            Text.assemble("  📝 Total Prompts: ", (f"{s.total_prompts:,}", "green")),
            Text.assemble("  🎯 Total Tokens: ", (f"{s.total_tokens:,}", "yellow")),
            Text.assemble("  💰 Total Cost: ", (f"${s.total_cost:.4f}", "magenta")),
            Text.assemble("  ⏱  Avg Time/Prompt: ", (f"{s.total_duration / s.total_prompts:.2f}s", "blue")),
            Text.assemble("  💵 Cost/Prompt: ", (f"${s.total_cost / s.total_prompts:.6f}", "cyan")),
            Text.assemble("  🔄 Sessions: ", str(s.unique_sessions)),
        ])
    else:
        parts.append(Text("  No usage data recorded today", style="dim"))

    parts.append(Text(f"\n📈 Activity (Last {len(snapshot.activity_hours)} Hours):", style="bold green"))
    parts.extend(render_activity_chart(snapshot))
    parts.append(Rule(characters="═"))
    parts.append(_footer(snapshot))
    return Group(*parts)


def render_activity_chart(snapshot: DashboardSnapshot, height: int = 5) -> list[Text]:
    hourly = snapshot.stats.hourly_breakdown
    prompts = [hourly[h].prompts for h in snapshot.activity_hours]
    peak = max(prompts, default=0)
    if peak <= 0:
        return [Text("  No activity recorded", style="dim")]
    bars = []
    for count in prompts:
        filled = math.ceil(count * height / peak)
        bars.append("█" * filled + "░" * (height - filled))
    return [Text("  " + " ".join(bars)), Text("  " + " ".join(
        h.ljust(height) for h in snapshot.activity_hours))]


def _footer(snapshot: DashboardSnapshot) -> Text:
    stamp = snapshot.computed_at.astimezone().strftime("%H:%M:%S")
    return Text(f"📊 Last update: {stamp} ({snapshot.compute_ms:.2f}ms)", style="dim")


# ---------------------------------------------------------------------------
# track
# ---------------------------------------------------------------------------

@cli.command()
@click.option("-f", "--file", "log_file", type=click.Path(path_type=Path, dir_okay=False),
              default=None, help="Usage log file (default: tracking/logFile setting)")
@click.option("-i", "--interval", type=click.IntRange(min=1), default=None,
              help="Tracking interval in seconds (default: tracking/interval setting)")
@click.option("--probe", type=click.Choice(["none", "simulation", "process"]), default="none",
              help="Extra activity probe polled each tick")
@session_dir_option
@click.pass_obj
def track(config: ConfigManager, log_file: Optional[Path], interval: Optional[int], probe: str,
          session_dir: Optional[Path]):
    """Track Copilot sessions in the background and log them."""
    interval = interval or config.get_int("tracking/interval")
    processor = SessionProcessor(_session_dir(config, session_dir))
    store = UsageLogStore(log_file or config.get_path("tracking/logFile"))
    activity_probe = make_probe(probe)
    state = TrackerState()

    console.print("[cyan]🔍 Starting GitHub Copilot Usage Tracker[/cyan]")
    console.print(f"[dim]📁 Monitoring: {processor.history_dir}[/dim]")
    console.print(f"[dim]📝 Logging to: {store.log_file}[/dim]")
    console.print(f"[dim]⏱  Check interval: {interval}s[/dim]\n")
    if probe == "process" and detect_copilot_type() == CopilotType.NONE:
        console.print("[yellow]⚠  No Copilot CLI detected; process probe will find nothing[/yellow]")

    try:
        with store:
            existing = processor.get_session_files()
            console.print(f"[green]✓ Found {len(existing)} existing session files[/green]")
            console.print("[green]🚀 Tracker started! (Press Ctrl+C to stop)[/green]")
            console.print(Rule(style="dim"))
            if existing:
                console.print("[blue]📂 Processing existing sessions...[/blue]")
            _track_tick(processor, state, store, activity_probe)
            console.print(Rule(style="dim"))
            console.print("[dim]👀 Watching for new Copilot sessions...[/dim]\n")
            while True:
                time.sleep(interval)
                _track_tick(processor, state, store, activity_probe)
    except KeyboardInterrupt:
        _print_tracker_summary(state)
    except OSError as e:
        _fail("Tracker failed", e)


def _track_tick(processor: SessionProcessor, state: TrackerState, store: UsageLogStore,
                activity_probe):
    before = state.totals.tracked
    try:
        result = check_for_new_sessions(processor, state, store=store, on_event=_print_tracked_event)
        probed = poll_probe(activity_probe, state, store=store, on_event=_print_tracked_event)
    except Exception as e:
        logger.exception("Error checking for new sessions")
        console.print(f"[red]✗ Error checking for new sessions:[/red] {e}")
        return

    totals = state.totals
    if totals.tracked // 5 > before // 5:
        console.print(Rule(style="dim"))
        console.print(Text.assemble(
            "📊 Running totals: ", (f"{totals.tracked} sessions, ", "dim"),
            (f"{totals.tokens:,} tokens, ", "yellow"), (f"${totals.cost:.6f}", "magenta"),
        ))
        console.print(Rule(style="dim"))
    if not result.new_events and not probed:
        stamp = datetime.now().strftime("%H:%M:%S")
        console.print(f"[dim][{stamp}] 👀 Watching for new sessions... "
                      f"({result.total_files} total)[/dim]")


def _print_tracked_event(event: UsageEvent, metrics: Optional[SessionMetrics]):
    stamp = event.timestamp.astimezone().strftime("%H:%M:%S")
    label = f"Session: {event.session_id[:8]}..." if metrics else f"Command: {truncate(event.command)}"
    console.print(Text.assemble((f"[{stamp}]", "blue"), " 📄 ", label))
    details = [("  ", ""), (f"🎯 {event.total_tokens} tokens ", "yellow"),
               (f"💰 ${event.cost:.6f} ", "magenta")]
    if metrics is not None:
        details.append((f"📝 {metrics.prompts} prompts ", "cyan"))
        details.append((f"⏱  {format_duration(metrics.duration)}", "blue"))
    else:
        details.append((f"🤖 {event.model}", "cyan"))
    console.print(Text.assemble(*details))


def _print_tracker_summary(state: TrackerState):
    totals = state.totals
    console.print("\n\n[yellow]⏹  Stopping tracker...[/yellow]")
    console.print("📊 Session Summary:")
    console.print(f"[dim]   Commands tracked: {totals.tracked}[/dim]")
    console.print(f"[dim]   Total tokens: {totals.tokens:,}[/dim]")
    console.print(f"[dim]   Total cost: ${totals.cost:.6f}[/dim]")
    console.print("[green]✓ Tracker stopped successfully[/green]")


# ---------------------------------------------------------------------------
# demo
# ---------------------------------------------------------------------------

@cli.command()
@click.option("--days", type=click.IntRange(min=1), default=7, help="Number of days to generate")
@click.option("-f", "--file", "log_file", type=click.Path(path_type=Path, dir_okay=False),
              default=None, help="Usage log file (default: tracking/logFile setting)")
@click.option("--seed", type=int, default=None, help="Random seed for reproducible data")
@click.pass_obj
def demo(config: ConfigManager, days: int, log_file: Optional[Path], seed: Optional[int]):
    """Generate demo usage data in the usage log."""
    store = UsageLogStore(log_file or config.get_path("tracking/logFile"))
    console.print("[cyan]🎭 Generating Demo Data for GitHub Copilot Usage Tracker[/cyan]\n")
    try:
        with console.status("Creating realistic usage patterns..."):
            count = write_demo_data(store, days, seed=seed)
    except OSError as e:
        _fail("Failed to generate demo data", e)
    console.print(f"[green]✓ Generated {count} demo usage entries over {days} days[/green]")
    console.print(f"[dim]📁 Saved to: {store.log_file}[/dim]")


# ---------------------------------------------------------------------------
# config
# ---------------------------------------------------------------------------

@cli.group("config")
def config_group():
    """Show or change persistent settings."""


@config_group.command("show")
@click.pass_obj
def config_show(config: ConfigManager):
    """Print effective settings."""
    table = Table(title=str(config.path), header_style="cyan")
    table.add_column("Key")
    table.add_column("Value")
    for key, value in config.items().items():
        table.add_row(key, value)
    console.print(table)


@config_group.command("set")
@click.argument("key", type=click.Choice(sorted(DEFAULTS)))
@click.argument("value")
@click.pass_obj
def config_set(config: ConfigManager, key: str, value: str):
    """Persist a setting."""
    config.set_value(key, value)
    console.print(f"[green]✓ {key} = {value}[/green]")


@config_group.command("unset")
@click.argument("key", type=click.Choice(sorted(DEFAULTS)))
@click.pass_obj
def config_unset(config: ConfigManager, key: str):
    """Reset a setting to its default."""
    config.remove(key)
    console.print(f"[green]✓ {key} reset to {DEFAULTS[key]}[/green]")


def main():
    cli()


if __name__ == "__main__":
    main()
