"""Console script for envproj."""

import logging
from pathlib import Path
from typing import List, Optional

import numpy as np
import pandas as pd
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from envproj.downscaling import RegressionDownscaler
from envproj.empirical import EmpiricalResampler
from envproj.ensemble import ProjectionEnsemble, bands_to_frame
from envproj.fitting import DistributionFitter
from envproj.metrics import goodness_of_fit
from envproj.parametric import ParametricProjector
from envproj.series import make_series, tail

app = typer.Typer(help="Project environmental time series by resampling, "
                       "distribution fitting and regression downscaling.")
console = Console()


def _read_series(path: Path, column: Optional[str] = None) -> pd.Series:
    """Read a ``year,<value>`` CSV; rows with missing values are dropped."""
    df = pd.read_csv(path)
    if "year" not in df.columns:
        raise typer.BadParameter(f"{path} has no 'year' column")
    if column is None:
        others = [c for c in df.columns if c != "year"]
        if not others:
            raise typer.BadParameter(f"{path} has no value column")
        column = others[0]
    elif column not in df.columns:
        raise typer.BadParameter(f"{path} has no column '{column}'")
    df = df[["year", column]]
    n_missing = int(df[column].isna().sum())
    if n_missing:
        console.print(f"[yellow]{path}: dropping {n_missing} row(s) with missing values[/yellow]")
        df = df.dropna()
    return make_series(df["year"].to_numpy(), df[column].to_numpy(), name=column)


def _parse_levels(text: str) -> List[float]:
    try:
        return [float(q) for q in text.split(",") if q.strip()]
    except ValueError:
        raise typer.BadParameter(f"cannot parse quantile levels '{text}'") from None


def _band_levels(text: str):
    levels = _parse_levels(text)
    if len(levels) != 3:
        raise typer.BadParameter("expected three levels: low,median,high")
    return levels


def _print_frame(df: pd.DataFrame, title: str):
    table = Table(title=title)
    for col in df.columns:
        table.add_column(str(col))
    for row in df.itertuples(index=False):
        table.add_row(*[f"{v:.4g}" if isinstance(v, (float, np.floating)) else str(v) for v in row])
    console.print(table)


def _emit(df: pd.DataFrame, title: str, output: Optional[Path]):
    if output is not None:
        df.to_csv(output, index=False)
        console.print(f"wrote {len(df)} rows to {output}")
    else:
        _print_frame(df, title)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging.")):
    """Console script for envproj."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")


@app.command()
def fit(
    path: Path = typer.Argument(..., exists=True, help="CSV with 'year' and a value column."),
    family: List[str] = typer.Option(["lognormal"], "--family", "-f",
                                     help="Family to fit; repeat to compare by AIC."),
    column: Optional[str] = typer.Option(None, help="Value column (default: first non-year)."),
):
    """Fit distribution families by maximum likelihood."""
    try:
        series = _read_series(path, column)
        fits = DistributionFitter().fit_many(series.to_numpy(), family)
    except ValueError as err:
        console.print(f"[red]{escape(str(err))}[/red]")
        raise typer.Exit(code=1)
    for fitted in fits:
        errors = fitted.std_errors or (float("nan"),) * len(fitted.params)
        params = pd.DataFrame({"parameter": fitted.param_names,
                               "estimate": fitted.params,
                               "std. error": errors})
        _print_frame(params, f"{fitted.family} (AIC {fitted.aic:.4g})")
        _print_frame(goodness_of_fit(series.to_numpy(), fitted), f"{fitted.family} goodness of fit")


@app.command()
def sample(
    path: Path = typer.Argument(..., exists=True),
    family: str = typer.Option("lognormal", "--family", "-f"),
    n: int = typer.Option(1000, "--n", "-n", help="Number of draws."),
    shift: float = typer.Option(0.0, help="Additive shift of the location parameter."),
    scale: float = typer.Option(1.0, help="Multiplier of the scale parameter."),
    seed: Optional[int] = typer.Option(None),
    column: Optional[str] = typer.Option(None),
    output: Optional[Path] = typer.Option(None, "--output", "-o"),
):
    """Fit a family, then draw (optionally shifted) samples from it."""
    try:
        series = _read_series(path, column)
        fitted = DistributionFitter().fit(series.to_numpy(), family)
        draws = ParametricProjector(seed).sample_shifted(fitted, n, shift, scale)
    except ValueError as err:
        console.print(f"[red]{escape(str(err))}[/red]")
        raise typer.Exit(code=1)
    df = pd.DataFrame({"draw": np.arange(n), "value": draws})
    if output is not None:
        _emit(df, "samples", output)
    else:
        summary = EmpiricalResampler.summarize(draws, (0.05, 0.25, 0.5, 0.75, 0.95))
        _print_frame(pd.DataFrame({"quantile": list(summary), "value": list(summary.values())}),
                     f"{n} draws from {fitted!r}")


@app.command()
def summarize(
    path: Path = typer.Argument(..., exists=True),
    quantiles: str = typer.Option("0.25,0.5,0.75", "--quantiles", "-q"),
    last: Optional[int] = typer.Option(None, help="Use only the last N years."),
    resample: int = typer.Option(0, help="Bootstrap sample size (0: summarize the data)."),
    seed: Optional[int] = typer.Option(None),
    column: Optional[str] = typer.Option(None),
):
    """Quantiles of the observations or of a bootstrap sample of them."""
    try:
        series = _read_series(path, column)
        if last is not None:
            series = tail(series, last)
        values = series.to_numpy()
        if resample > 0:
            values = EmpiricalResampler(seed).resample(values, resample)
        summary = EmpiricalResampler.summarize(values, _parse_levels(quantiles))
    except ValueError as err:
        console.print(f"[red]{escape(str(err))}[/red]")
        raise typer.Exit(code=1)
    _print_frame(pd.DataFrame({"quantile": list(summary), "value": list(summary.values())}),
                 f"{series.name}: {len(values)} values")


@app.command()
def project(
    local: Path = typer.Argument(..., exists=True, help="Observed local series."),
    covariate: Path = typer.Argument(..., exists=True, help="Historical covariate series."),
    future: Path = typer.Argument(..., exists=True, help="Future covariate trajectory."),
    n: int = typer.Option(1000, "--n", "-n", help="Residual-bootstrap draws."),
    quantiles: str = typer.Option("0.05,0.5,0.95", "--quantiles", "-q"),
    link: str = typer.Option("identity", help="'identity' or 'log'."),
    seed: Optional[int] = typer.Option(None),
    n_jobs: Optional[int] = typer.Option(None, "--n-jobs"),
    output: Optional[Path] = typer.Option(None, "--output", "-o"),
):
    """Downscale a future covariate trajectory with residual bootstrap."""
    levels = _band_levels(quantiles)
    try:
        downscaler = RegressionDownscaler(link=link)
        model = downscaler.fit(_read_series(local), _read_series(covariate))
        future_series = _read_series(future)
        ensemble = ProjectionEnsemble(n_jobs=n_jobs, random_state=seed)
        matrix = ensemble.run(
            lambda rng: downscaler.project(model, future_series, random_state=rng), n)
        bands = ensemble.quantile_bands(matrix, *levels)
        r_squared = model.r_squared
    except ValueError as err:
        console.print(f"[red]{escape(str(err))}[/red]")
        raise typer.Exit(code=1)
    console.print(f"coefficients: {dict(model.coefficients)}, R^2 = {r_squared:.3f}")
    _emit(bands_to_frame(bands), "downscaled projection", output)


@app.command()
def ensemble(
    path: Path = typer.Argument(..., exists=True),
    start: int = typer.Option(..., help="First projected year."),
    end: int = typer.Option(..., help="Last projected year."),
    method: str = typer.Option("empirical", help="'empirical', 'block' or 'parametric'."),
    family: str = typer.Option("lognormal", "--family", "-f"),
    shift: float = typer.Option(0.0),
    scale: float = typer.Option(1.0),
    last: Optional[int] = typer.Option(None, help="Resample only the last N years."),
    block_size: int = typer.Option(5),
    n: int = typer.Option(1000, "--n", "-n"),
    quantiles: str = typer.Option("0.05,0.5,0.95", "--quantiles", "-q"),
    seed: Optional[int] = typer.Option(None),
    n_jobs: Optional[int] = typer.Option(None, "--n-jobs"),
    column: Optional[str] = typer.Option(None),
    output: Optional[Path] = typer.Option(None, "--output", "-o"),
):
    """Ensemble of future trajectories and their quantile bands."""
    levels = _band_levels(quantiles)
    years = np.arange(start, end + 1)
    try:
        series = _read_series(path, column)
        if last is not None:
            series = tail(series, last)
        values = series.to_numpy()
        if method == "empirical":
            resampler = EmpiricalResampler()
            projector = lambda rng: resampler.resample(values, len(years), random_state=rng)
        elif method == "block":
            resampler = EmpiricalResampler()
            projector = lambda rng: resampler.block_resample(values, len(years), block_size,
                                                             random_state=rng)
        elif method == "parametric":
            fitted = DistributionFitter().fit(values, family)
            projector = lambda rng: ParametricProjector().sample_shifted(
                fitted, len(years), shift, scale, random_state=rng)
        else:
            raise typer.BadParameter(f"unknown method '{method}'")
        runner = ProjectionEnsemble(n_jobs=n_jobs, random_state=seed)
        matrix = runner.run(projector, n, index=years)
        bands = runner.quantile_bands(matrix, *levels)
    except ValueError as err:
        console.print(f"[red]{escape(str(err))}[/red]")
        raise typer.Exit(code=1)
    _emit(bands_to_frame(bands), f"{method} ensemble, {n} draws", output)


if __name__ == "__main__":
    app()
