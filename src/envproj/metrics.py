import numpy as np
import pandas as pd
from scipy import stats

from .fitting import FittedDistribution
from .helpers import check_values


def goodness_of_fit(values, fitted: FittedDistribution) -> pd.DataFrame:
    """
    Summary table of how well `fitted` describes `values`.

    Kolmogorov-Smirnov is computed against the fitted distribution, so the
    p-value is optimistic (the parameters were estimated on the same data).
    """
    values = check_values(values)
    ks_stat, ks_p = stats.kstest(values, fitted.frozen().cdf)
    return pd.DataFrame({
        "Statistic": [
            "Family",
            "Sample size",
            "Log-likelihood",
            "AIC",
            "BIC",
            "KS statistic",
            "KS p-value",
        ],
        "Value": [
            fitted.family,
            values.shape[0],
            fitted.log_likelihood,
            fitted.aic,
            fitted.bic,
            ks_stat,
            ks_p,
        ],
    })


def compare_samples(observed, simulated, label1="Observed", label2="Simulated") -> pd.DataFrame:
    """Descriptive statistics and two-sample distances, side by side."""
    data1 = check_values(observed, name=label1)
    data2 = check_values(simulated, name=label2)

    n_quantiles = min(len(data1), len(data2))
    quantiles1 = np.percentile(data1, np.linspace(0, 100, n_quantiles))
    quantiles2 = np.percentile(data2, np.linspace(0, 100, n_quantiles))
    if n_quantiles > 1 and np.ptp(quantiles1) > 0 and np.ptp(quantiles2) > 0:
        corr = np.corrcoef(quantiles1, quantiles2)[0, 1]
    else:
        corr = np.nan

    ks_stat, ks_p = stats.ks_2samp(data1, data2)
    wasserstein = stats.wasserstein_distance(data1, data2)
    std1 = np.std(data1, ddof=1) if len(data1) > 1 else np.nan
    std2 = np.std(data2, ddof=1) if len(data2) > 1 else np.nan

    return pd.DataFrame({
        "Statistic": [
            "Sample size",
            "Mean",
            "Std. deviation",
            "Min",
            "Max",
            "KS statistic",
            "KS p-value",
            "Wasserstein distance",
            "Quantile correlation",
        ],
        label1: [len(data1), data1.mean(), std1, data1.min(), data1.max(),
                 ks_stat, ks_p, wasserstein, corr],
        label2: [len(data2), data2.mean(), std2, data2.min(), data2.max(),
                 "", "", "", ""],
    })
