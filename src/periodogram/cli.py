from __future__ import annotations

"""Command line interface for periodogram using Typer."""

from pathlib import Path
from typing import Dict, List, NoReturn, Optional, Tuple

import json
import logging

import typer
from pydantic import ValidationError

from .config import Settings, load_settings
from .controller import QUIT_KEY, KEY_BINDINGS, Controller
from .core import DctCodec, band_energy, generate
from .errors import PeriodogramError
from .types import DctParams, Reading
from .utils.logging import get_logger
from .utils.signals import rms

app = typer.Typer(help="Noisy signal synthesis and truncated-DCT reconstruction")
logger = logging.getLogger(__name__)


def _parse_override_value(raw: str) -> object:
    lower = raw.lower()
    if lower in {"true", "false"}:
        return lower == "true"
    if lower in {"null", "none"}:
        return None
    try:
        return int(raw)
    except ValueError:
        pass
    try:
        return float(raw)
    except ValueError:
        pass
    if raw.startswith("[") or raw.startswith("{"):
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            raise typer.BadParameter(f"invalid JSON override value: {raw}") from None
    return raw


def _ensure_path(settings: Settings, keys: List[str]) -> None:
    current: object = settings
    for key in keys[:-1]:
        if not hasattr(current, key):
            raise typer.BadParameter(f"unknown configuration key: {'.'.join(keys)}")
        current = getattr(current, key)
    if not hasattr(current, keys[-1]):
        raise typer.BadParameter(f"unknown configuration key: {'.'.join(keys)}")


def _apply_override(data: Dict[str, object], keys: List[str], value: object) -> None:
    target = data
    for key in keys[:-1]:
        existing = target.get(key)
        if not isinstance(existing, dict):
            existing = {}
            target[key] = existing
        target = existing
    target[keys[-1]] = value


def _build(
    cfg: Settings,
    outputs: Optional[int],
    coeffs: Optional[int],
    seed: Optional[int],
    provider: Optional[str],
) -> Tuple[Tuple[Reading, ...], DctCodec]:
    sig = cfg.signal
    readings = generate(
        sig.amplitude,
        sig.freq,
        sig.noise_fraction,
        sig.duration,
        sig.sample_count,
        sig.rectified,
        seed=seed if seed is not None else sig.seed,
    )
    params = DctParams(
        outputs_count=outputs if outputs is not None else cfg.codec.outputs_count,
        coeffs_count=coeffs if coeffs is not None else cfg.codec.coeffs_count,
    )
    codec = DctCodec(
        params,
        provider=provider or cfg.codec.provider,
        max_coeffs=cfg.codec.max_coeffs,
        max_outputs=cfg.codec.max_outputs,
    )
    return readings, codec


def _fail(exc: Exception) -> NoReturn:
    logger.debug("command failed", exc_info=exc)
    typer.secho(f"error: {exc}", err=True)
    raise typer.Exit(code=1)


def _error(codec: DctCodec, readings: Tuple[Reading, ...]) -> float:
    window = readings[codec.window.start : codec.window.end]
    residual = [r.value - out for r, out in zip(window, codec.outputs())]
    return rms(residual) if residual else 0.0


@app.callback()
def init(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        dir_okay=False,
        file_okay=True,
        exists=False,
        help="Path to a YAML or JSON configuration file.",
    ),
    set_overrides: List[str] = typer.Option(
        [],
        "--set",
        help="Override configuration values using dotted paths, e.g. codec.coeffs_count=4",
    ),
) -> None:
    """Initialise the Typer context with validated settings."""

    if config is not None and not config.exists():
        raise typer.BadParameter(f"configuration file not found: {config}")

    try:
        settings = load_settings(config) if config else Settings()
    except (FileNotFoundError, RuntimeError, TypeError, json.JSONDecodeError) as exc:
        raise typer.BadParameter(f"failed to load configuration: {exc}") from exc
    except ValidationError as exc:
        raise typer.BadParameter(f"invalid configuration: {exc}") from exc

    if set_overrides:
        data = settings.model_dump()
        for override in set_overrides:
            if "=" not in override:
                raise typer.BadParameter(
                    "overrides must be of the form --set section.key=value"
                )
            key, raw_value = override.split("=", 1)
            if not key:
                raise typer.BadParameter("override key cannot be empty")
            keys = key.split(".")
            _ensure_path(settings, keys)
            value = _parse_override_value(raw_value)
            _apply_override(data, keys, value)
        try:
            settings = Settings.model_validate(data)
        except ValidationError as exc:
            raise typer.BadParameter(f"invalid configuration override: {exc}") from exc

    get_logger("periodogram", level=settings.logging.level)
    ctx.obj = settings


@app.command()
def run(
    ctx: typer.Context,
    outputs: Optional[int] = typer.Option(None, "--outputs", "-n", help="Window size"),
    coeffs: Optional[int] = typer.Option(None, "--coeffs", "-k", help="Retained coefficients"),
    seed: Optional[int] = typer.Option(None, "--seed"),
    provider: Optional[str] = typer.Option(None, "--provider"),
    values: bool = typer.Option(False, "--values", help="Print reconstructed values"),
) -> None:
    """Generate the signal once and reconstruct its leading window."""

    cfg: Settings = ctx.obj
    try:
        readings, codec = _build(cfg, outputs, coeffs, seed, provider)
        codec.apply(readings, cfg.signal.amplitude_range)
    except PeriodogramError as exc:
        _fail(exc)

    params = codec.params
    typer.echo(
        f"readings={len(readings)} outputs={params.outputs_count} "
        f"coeffs={params.coeffs_count} provider={codec.provider.name} "
        f"rms_error={_error(codec, readings):.6f}"
    )
    if values:
        for reading in codec.output_readings():
            typer.echo(f"{reading.when.isoformat()} {reading.value:.6f}")


@app.command()
def sweep(
    ctx: typer.Context,
    outputs: Optional[int] = typer.Option(None, "--outputs", "-n", help="Window size"),
    seed: Optional[int] = typer.Option(None, "--seed"),
    provider: Optional[str] = typer.Option(None, "--provider"),
) -> None:
    """Report reconstruction error as coefficients are dropped one by one.

    Starting from the largest admissible ``coeffs_count`` the codec is
    adjusted down to a single coefficient.  For each step the RMS error
    against the window and the energy left above the retained band in a
    fresh forward transform of the normalized reconstruction are printed.
    """

    cfg: Settings = ctx.obj
    try:
        n = outputs if outputs is not None else cfg.codec.outputs_count
        start = max(1, min(n, cfg.codec.max_coeffs))
        readings, codec = _build(cfg, n, start, seed, provider)
        codec.apply(readings, cfg.signal.amplitude_range)
    except PeriodogramError as exc:
        _fail(exc)

    lo, hi = cfg.signal.amplitude_range
    typer.echo("coeffs rms_error high_band_energy")
    while True:
        params = codec.params
        restored = (codec.outputs() - lo) / (hi - lo)
        energy = band_energy(codec.provider.forward(restored), params.coeffs_count)
        typer.echo(f"{params.coeffs_count} {_error(codec, readings):.6f} {energy:.3e}")
        if params.coeffs_count == 1:
            break
        codec.adjust("coeffs_count", -1)


@app.command()
def plot(
    ctx: typer.Context,
    outputs: Optional[int] = typer.Option(None, "--outputs", "-n", help="Window size"),
    coeffs: Optional[int] = typer.Option(None, "--coeffs", "-k", help="Retained coefficients"),
    seed: Optional[int] = typer.Option(None, "--seed"),
    provider: Optional[str] = typer.Option(None, "--provider"),
    save: Optional[Path] = typer.Option(None, "--save", help="Path to save the figure"),
    show: bool = typer.Option(False, "--show", help="Display the figure interactively"),
) -> None:
    """Plot the signal, the window and its reconstruction with matplotlib."""

    from .viz.helpers import save_or_show
    from .viz.plot_codec import plot_reconstruction

    cfg: Settings = ctx.obj
    try:
        readings, codec = _build(cfg, outputs, coeffs, seed, provider)
        codec.apply(readings, cfg.signal.amplitude_range)
    except PeriodogramError as exc:
        _fail(exc)

    save = save or (Path(cfg.viz.save) if cfg.viz.save else None)
    if save is None and not show:
        raise typer.BadParameter("nothing to do: pass --save PATH or --show")
    fig = plot_reconstruction(readings, codec, cfg.signal.amplitude_range, title=cfg.viz.title)
    save_or_show(fig, save, show)
    if save:
        typer.echo(f"saved figure to {save}")


@app.command()
def session(
    ctx: typer.Context,
    outputs: Optional[int] = typer.Option(None, "--outputs", "-n", help="Window size"),
    coeffs: Optional[int] = typer.Option(None, "--coeffs", "-k", help="Retained coefficients"),
    seed: Optional[int] = typer.Option(None, "--seed"),
    provider: Optional[str] = typer.Option(None, "--provider"),
) -> None:
    """Adjust the codec interactively, one key per line.

    ``s``/``a`` grow or shrink the window, ``x``/``z`` add or drop a
    coefficient and ``q`` quits.
    """

    cfg: Settings = ctx.obj
    try:
        readings, codec = _build(cfg, outputs, coeffs, seed, provider)
        controller = Controller(codec, readings, cfg.signal.amplitude_range)
    except PeriodogramError as exc:
        _fail(exc)

    keys = ", ".join(f"{key}={name}{delta:+d}" for key, (name, delta) in KEY_BINDINGS.items())
    typer.echo(f"keys: {keys}, {QUIT_KEY}=quit")
    typer.echo(f"outputs={codec.params.outputs_count} coeffs={codec.params.coeffs_count}")
    while True:
        try:
            key = typer.prompt(">", default=QUIT_KEY, show_default=False)
        except typer.Abort:
            break
        if key.strip().lower() == QUIT_KEY:
            break
        outcome = controller.handle(key)
        status = "ok" if outcome.accepted else f"rejected: {outcome.error}"
        typer.echo(
            f"outputs={outcome.params.outputs_count} coeffs={outcome.params.coeffs_count} "
            f"rms_error={_error(codec, readings):.6f} {status}"
        )


def main() -> None:
    """Execute the Typer application."""

    app()


if __name__ == "__main__":
    main()
