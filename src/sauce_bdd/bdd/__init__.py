from .parser import FeatureParser, Feature, Scenario, Step, StepRole

__all__ = ["FeatureParser", "Feature", "Scenario", "Step", "StepRole"]
