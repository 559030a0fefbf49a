"""Design analysis of simulated sequential Bayes-factor trajectories.

Given a long-format table with one row per (trajectory id, sample size) the
analysis:

* classifies each trajectory as stopping at the upper boundary, at the lower
  boundary, or surviving to the sample-size ceiling n_max;
* estimates the distribution of stopping points (Gaussian KDE, Silverman's
  rule-of-thumb bandwidth);
* summarizes outcome fractions, the average sample number (ASN) and, for
  fixed-n designs, a frequentist power estimate.

Simulation of the trajectories happens elsewhere; this package only analyzes
an already materialized table.
"""

from bfda.analysis.schema import (
    AnalysisConfig,
    AnalysisResult,
    Density,
    TRAJECTORY_COLUMNS,
    resolve_boundary,
)
from bfda.analysis.core import analyze, run_analysis
from bfda.analysis.reporting import render_analysis_md, render_analysis_text, stopping_n_quantiles
