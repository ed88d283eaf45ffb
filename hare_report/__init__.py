"""
Juvenile snowshoe hare report.

Exploratory analysis of Bonanza Creek LTER snowshoe hare trapping records:
annual juvenile counts, male/female weight comparison (Welch t-test,
Cohen's d) and the weight vs hindfoot length relationship (OLS, Pearson's r),
rendered as a Markdown report with four figures.
"""

__all__ = [
    "config",
    "io",
    "fetch",
    "preprocess",
    "stats",
    "plots",
    "guardrails",
    "report",
    "run",
]

__version__ = "0.1.0"
