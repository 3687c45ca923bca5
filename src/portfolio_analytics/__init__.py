"""
Marketing analytics portfolio.

Numeric routines behind the narrative case studies in ``notebooks/``:
- poisson: Poisson likelihoods and regression MLE (Blueprinty, Airbnb)
- mnl: simulated conjoint data and multinomial logit MLE
- mcmc: Metropolis-Hastings posterior sampling
- experiment: Karlan & List (2007) charitable giving replication
- kmeans / knn: from-scratch clustering and classification
"""

__version__ = "0.1.0"
