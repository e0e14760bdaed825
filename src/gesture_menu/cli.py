"""gesture-menu CLI.

Usage:
    gesture-menu serve         — Start the WebSocket bridge (optionally recording)
    gesture-menu replay        — Replay a recorded pointer session
    gesture-menu angle         — Fan direction for a touch position
    gesture-menu resolve       — Selection for a drag vector
    gesture-menu init-config   — Write the default tuning config
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer

from gesture_menu.config import ConfigError, GestureConfig, load_config

app = typer.Typer(
    name="gesture-menu",
    help="Radial drag-to-select gesture menu.",
    add_completion=False,
)


def _load(config_path: Optional[str]) -> GestureConfig:
    try:
        return load_config(config_path)
    except ConfigError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(1)


def _load_hooks(hooks_path: str):
    from gesture_menu.hooks import HostHooks

    try:
        hooks = HostHooks.from_yaml(hooks_path)
    except ConfigError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(1)
    typer.echo(f"🔗 Loaded {len(hooks.bindings)} host hooks: {hooks_path}")
    return hooks


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind address"),
    port: int = typer.Option(8765, help="Port"),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to gesture config YAML"),
    hooks_path: Optional[str] = typer.Option(None, "--hooks", help="YAML mapping outcomes to host-app URLs"),
    record: Optional[str] = typer.Option(None, "--record", help="Save each pointer session here (.json or .npz)"),
    log_level: str = typer.Option("info", help="Log level"),
):
    """Start the pointer/renderer WebSocket server."""
    import uvicorn
    from gesture_menu.server import app as fastapi_app, configure

    config = _load(config_path)
    hooks = _load_hooks(hooks_path) if hooks_path else None
    if record:
        typer.echo(f"⏺️  Recording pointer sessions to: {record}")

    configure(config, hooks, record_path=record)

    typer.echo(f"🚀 Starting gesture-menu server on {host}:{port}")
    uvicorn.run(fastapi_app, host=host, port=port, log_level=log_level)


@app.command()
def replay(
    recording: str = typer.Argument(..., help="Path to recording file (.json or .npz)"),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to gesture config YAML"),
    hooks_path: Optional[str] = typer.Option(None, "--hooks", help="Send outcomes to host-app hooks"),
    verbose: bool = typer.Option(False, "-v", help="Show controller debug logs"),
):
    """Replay a recorded pointer session through the controller."""
    from gesture_menu.controller import GestureMenuController
    from gesture_menu.recorder import PointerPlayer

    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    path = Path(recording)
    if not path.exists():
        typer.echo(f"❌ Recording not found: {recording}", err=True)
        raise typer.Exit(1)

    config = _load(config_path)
    hooks = _load_hooks(hooks_path) if hooks_path else None
    player = PointerPlayer.load(path)
    typer.echo(
        f"▶️  Replaying {path.name} ({player.event_count} events, {player.duration:.0f} ms, "
        f"screen {player.screen_size[0]:.0f}x{player.screen_size[1]:.0f})"
    )

    controller = GestureMenuController(config=config, screen_size=player.screen_size)
    outcomes = []
    controller.on_outcome(outcomes.append)

    def on_angle(menu):
        if menu.visible and menu.drag_offset == (0.0, 0.0):
            typer.echo(f"   ⭕ menu opened, angle {menu.center_angle:.1f}°")

    controller.store.subscribe(on_angle)

    async def _run():
        await controller.run(player.source())
        if hooks is not None:
            try:
                for outcome in outcomes:
                    await hooks.dispatch(outcome)
            finally:
                await hooks.aclose()

    asyncio.run(_run())

    for outcome in outcomes:
        typer.echo(f"   🤚 {outcome.kind.value} ({outcome.duration_ms:.0f} ms)")
    if hooks is not None:
        typer.echo(f"   🔗 {hooks.sent} hook calls, {hooks.failures} failed")
    typer.echo(f"\n✅ Replay complete. {len(outcomes)} gestures resolved.")


@app.command()
def angle(
    x: float = typer.Argument(..., help="Touch X in pixels"),
    y: float = typer.Argument(..., help="Touch Y in pixels"),
    width: float = typer.Option(1080, help="Screen width in pixels"),
    height: float = typer.Option(2400, help="Screen height in pixels"),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to gesture config YAML"),
):
    """Print the fan direction for a touch position."""
    from gesture_menu.geometry import compute_center_angle, fan_icon_positions

    config = _load(config_path)
    try:
        center = compute_center_angle(x, y, width, height)
    except ValueError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"center angle: {center:.2f}°")
    for action, (ix, iy) in fan_icon_positions((x, y), center, config.menu_radius_px).items():
        typer.echo(f"   {action.value:8s} icon at ({ix:.1f}, {iy:.1f})")


@app.command()
def resolve(
    dx: float = typer.Argument(..., help="Drag X in pixels"),
    dy: float = typer.Argument(..., help="Drag Y in pixels"),
    center: float = typer.Option(270.0, "--center", help="Fan center angle in degrees"),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to gesture config YAML"),
):
    """Print which action a drag vector selects."""
    from gesture_menu.geometry import resolve_selection

    config = _load(config_path)
    selection = resolve_selection(
        (dx, dy), center, dead_zone=config.dead_zone_px, sectors=config.sectors
    )
    typer.echo(selection.value if selection else "none")


@app.command("init-config")
def init_config(
    output: str = typer.Option("gesture_menu.yml", "-o", help="Output YAML path"),
    force: bool = typer.Option(False, help="Overwrite an existing file"),
):
    """Write the default tuning config to a YAML file."""
    path = Path(output)
    if path.exists() and not force:
        typer.echo(f"❌ {output} exists (use --force to overwrite)", err=True)
        raise typer.Exit(1)

    GestureConfig().to_yaml(path)
    typer.echo(f"💾 Saved default config to: {output}")


def main():
    app()


if __name__ == "__main__":
    main()
