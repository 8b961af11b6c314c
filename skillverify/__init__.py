"""SkillVerify: peer-verified skill reputation service."""

__version__ = "0.1.0"
