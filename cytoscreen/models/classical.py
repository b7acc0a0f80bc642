"""Classical classifier families: k-NN, kernel Naive Bayes and linear SVM."""

import numpy as np
from typing import Dict, Any, Optional, Type
from sklearn.neighbors import KNeighborsClassifier
from sklearn.calibration import CalibratedClassifierCV
from sklearn.svm import SVC

from .base import BaseModel, ModelFamily, safe_int, safe_float
from .kernel_naive_bayes import KernelNaiveBayes


class KNNModel(BaseModel):
    """K-Nearest Neighbors classifier."""
    family = ModelFamily.KNN

    def build_estimator(self, params: Dict[str, Any]):
        return KNeighborsClassifier(n_neighbors=safe_int(params.get('n_neighbors'), 5))


class NaiveBayesModel(BaseModel):
    """Naive Bayes with kernel densities and a Laplace-corrected prior."""
    family = ModelFamily.NAIVE_BAYES

    def build_estimator(self, params: Dict[str, Any]):
        return KernelNaiveBayes(
            usekernel=bool(params.get('usekernel', True)),
            laplace=safe_float(params.get('laplace'), 0.0),
        )


class LinearSVMModel(BaseModel):
    """Support Vector Machine with a linear kernel and sigmoid (Platt) calibrated probabilities."""
    family = ModelFamily.SVM_LINEAR

    def build_estimator(self, params: Dict[str, Any]):
        svm = SVC(
            kernel='linear',
            C=safe_float(params.get('C'), 1.0),
            random_state=self.random_state,
        )
        # ensemble=False: one SVC fitted on all rows, sigmoid fitted on cross-validated decisions
        return CalibratedClassifierCV(svm, method='sigmoid', cv=5, ensemble=False)

    def coefficients(self) -> np.ndarray:
        """Weights of the separating hyperplane, one per feature."""
        if not self.fitted:
            raise ValueError("Model not trained")
        return np.ravel(self.model.calibrated_classifiers_[0].estimator.coef_)


MODEL_CLASSES: Dict[ModelFamily, Type[BaseModel]] = {
    ModelFamily.KNN: KNNModel,
    ModelFamily.NAIVE_BAYES: NaiveBayesModel,
    ModelFamily.SVM_LINEAR: LinearSVMModel,
}


def create_model(family: ModelFamily, random_state: Optional[int] = None) -> BaseModel:
    """Instantiate the model class of a family."""
    return MODEL_CLASSES[ModelFamily.parse(family)](random_state=random_state)
