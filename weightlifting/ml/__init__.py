"""
weightlifting.ml — Stacked Classifier Report for Weight Lifting Exercises
=========================================================================

This package implements the analysis pipeline that classifies how a
dumbbell curl was performed (classes A–E) from body-worn sensor
measurements and reports how well a stacked random-forest model does.

Architecture:
    pml-training.csv / pml-testing.csv (remote CSV)
                         ↓
                  Dataset Loader (NA markers → NaN)
                         ↓
                  Feature Selector (52 complete numeric features)
                         ↓
                  Splitter: Training 60% | Validation 20% | Evaluation 20%
                         ↓
          Fold Trainer: k folds × {50, 75, 100, 150, 200} trees
                         ↓
          Stacker: random forest over k fold predictions (Validation)
                         ↓
          Evaluator: accuracy + confusion matrix (Evaluation)
                         ↓
                  HTML report (tables, heatmap, scatter, quiz answers)

Modules:
    config        — Data sources, column rules, hyperparameters, paths
    errors        — Pipeline exception types
    loader        — Raw CSV loading and missing-marker normalization
    preprocessing — Feature column selection
    splitting     — Stratified subsets and fold assignment
    model         — Random forest wrapper
    train         — Per-fold ensemble-size search
    stacking      — Second-stage classifier over fold predictions
    evaluation    — Out-of-sample accuracy and confusion matrix
    report        — HTML rendering with embedded figures
    pipeline      — End-to-end orchestration and entry point
    utils         — Logging setup and shared helpers
"""

__version__ = "1.0.0"
__author__ = "Weight Lifting Exercise Analysis Team"
