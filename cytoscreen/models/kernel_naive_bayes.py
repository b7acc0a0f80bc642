"""Naive Bayes classifier with per-feature kernel density estimates."""

import numpy as np
from sklearn.base import BaseEstimator, ClassifierMixin
from sklearn.utils.validation import check_X_y, check_array, check_is_fitted
from scipy.special import logsumexp

_LOG_FLOOR = 1e-300


class KernelNaiveBayes(BaseEstimator, ClassifierMixin):
    """
    Naive Bayes with Gaussian kernel densities per class and feature.

    Parameters
    ----------
    usekernel : bool
        Estimate each class-conditional density with a Gaussian kernel
        (Silverman bandwidth). When False, a single normal density per
        class and feature is used.
    laplace : float
        Laplace correction added to every class count when estimating the
        class priors.
    min_bandwidth : float
        Lower bound on bandwidth / standard deviation. Keeps densities finite
        for features that are constant within a class.
    """

    def __init__(self, usekernel=True, laplace=0.0, min_bandwidth=1e-3):
        self.usekernel = usekernel
        self.laplace = laplace
        self.min_bandwidth = min_bandwidth

    def fit(self, X, y):
        X, y = check_X_y(X, y)
        if self.laplace < 0:
            raise ValueError(f"laplace must be non-negative, got {self.laplace}")

        self.classes_, y_idx = np.unique(y, return_inverse=True)
        n_classes = len(self.classes_)
        counts = np.bincount(y_idx, minlength=n_classes).astype(float)
        self.class_log_prior_ = np.log(
            (counts + self.laplace) / (counts.sum() + n_classes * self.laplace))

        self.samples_ = []
        self.bandwidths_ = []
        for k in range(n_classes):
            X_k = X[y_idx == k]
            self.samples_.append(X_k)
            self.bandwidths_.append(self._bandwidth(X_k))
        self.n_features_in_ = X.shape[1]
        return self

    def _bandwidth(self, X_k):
        n = X_k.shape[0]
        sd = X_k.std(axis=0, ddof=1) if n > 1 else np.zeros(X_k.shape[1])
        if not self.usekernel:
            return np.maximum(sd, self.min_bandwidth)

        q75, q25 = np.percentile(X_k, [75, 25], axis=0)
        spread = np.minimum(sd, (q75 - q25) / 1.34)
        spread = np.where(spread > 0, spread, sd)
        bw = 0.9 * spread * n ** (-0.2)
        return np.maximum(bw, self.min_bandwidth)

    def _joint_log_likelihood(self, X):
        jll = np.empty((X.shape[0], len(self.classes_)))
        for k, (X_k, bw) in enumerate(zip(self.samples_, self.bandwidths_)):
            if self.usekernel:
                # (n_query, n_train, n_features) standardized distances
                z = (X[:, None, :] - X_k[None, :, :]) / bw
                log_kernel = -0.5 * z ** 2 - np.log(bw * np.sqrt(2 * np.pi))
                log_density = logsumexp(log_kernel, axis=1) - np.log(X_k.shape[0])
            else:
                mu = X_k.mean(axis=0)
                log_density = -0.5 * ((X - mu) / bw) ** 2 - np.log(bw * np.sqrt(2 * np.pi))
            log_density = np.maximum(log_density, np.log(_LOG_FLOOR))
            jll[:, k] = self.class_log_prior_[k] + log_density.sum(axis=1)
        return jll

    def predict_proba(self, X):
        check_is_fitted(self, 'classes_')
        X = check_array(X)
        jll = self._joint_log_likelihood(X)
        return np.exp(jll - logsumexp(jll, axis=1, keepdims=True))

    def predict(self, X):
        return self.classes_[np.argmax(self.predict_proba(X), axis=1)]
