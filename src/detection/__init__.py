"""
Sight Assist - Detection Module

This module turns raw model predictions into ranked spatial guidance.
"""

from .postprocess import classify_position, estimate_distance, process

__all__ = ['classify_position', 'estimate_distance', 'process']
