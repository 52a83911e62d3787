"""Exam portal: timed multiple-choice exam attempts."""

__version__ = "0.1.0"
