"""VideoAI - AI Video Generation Platform"""

__version__ = "1.0.0"
