import numpy as np
import pandas as pd

from envproj import (
    DistributionFitter,
    EmpiricalResampler,
    ParametricProjector,
    ProjectionEnsemble,
    RegressionDownscaler,
    bands_to_frame,
    make_series,
    tail,
)
from envproj.metrics import compare_samples, goodness_of_fit

# Synthetic stand-in for a regional bottom temperature record and the
# matching GCM sea surface temperature
rng = np.random.default_rng(42)
years = np.arange(1977, 2024)
gcm = make_series(years, 12 + 0.025 * (years - 1977) + rng.normal(0, 0.3, years.size),
                  name="gcm_sst")
bottom_temp = make_series(years, 0.5 + 0.35 * gcm.to_numpy() + rng.normal(0, 0.25, years.size),
                          name="bottom_temp")
horizon = np.arange(2024, 2061)

# Example 1: empirical resampling of the last 20 years
recent = tail(bottom_temp, 20)
resampler = EmpiricalResampler(random_state=1)
draws = resampler.resample(recent, 1000)
print("Empirical resampling of the last 20 years:")
print(resampler.summarize(draws, (0.05, 0.25, 0.5, 0.75, 0.95)))

# Example 2: distribution fitting, baseline and +0.1 log-scale warming
fitter = DistributionFitter()
fits = fitter.fit_many(bottom_temp, ["lognormal", "weibull", "gamma"])
for fitted in fits:
    print(fitted, "AIC:", round(fitted.aic, 2), "skewness:", round(fitted.skewness(), 3))
best = fits[0]
print(goodness_of_fit(bottom_temp, best))

projector = ParametricProjector(random_state=2)
baseline = projector.sample(best, 5000)
print(compare_samples(bottom_temp, baseline))

if best.descriptor.location is not None:
    warm = ProjectionEnsemble(random_state=3).run(
        lambda r: projector.trajectory(best, horizon, location_shift=0.1, ramp=True,
                                       random_state=r),
        500,
    )
    print("\nRamped warming scenario:")
    print(bands_to_frame(ProjectionEnsemble.quantile_bands(warm)).tail())

# Example 3: downscaling two warming pathways
downscaler = RegressionDownscaler(random_state=4)
model = downscaler.fit(bottom_temp, gcm)
print("\nCoefficients:", dict(model.coefficients), "R^2:", round(model.r_squared, 3))

pathways = {
    "low": pd.Series(13.2 + 0.01 * (horizon - 2024), index=horizon, name="gcm_sst"),
    "high": pd.Series(13.2 + 0.04 * (horizon - 2024), index=horizon, name="gcm_sst"),
}
matrix = downscaler.project_scenarios(model, pathways, n=500, n_jobs=2)
for name in pathways:
    cols = [i for i, label in enumerate(matrix.labels) if label.startswith(name + "_")]
    final = matrix.values[-1, cols]
    print(f"{name}: 2060 median {np.median(final):.2f}, "
          f"90% band ({np.quantile(final, 0.05):.2f}, {np.quantile(final, 0.95):.2f})")
