"""
Trainee progress tracking.

Correlates GitHub issues and pull requests, the class attendance register
and course schedule metadata into per-trainee submission states and a
progress score.
"""
