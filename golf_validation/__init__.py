"""Post-event validation and weight calibration for the golf ranking model."""

__version__ = "0.3.0"
