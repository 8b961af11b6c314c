"""REST API adapters.

Translate HTTP verbs, paths and JSON bodies into SkillVerificationPort
calls, and map results and typed failures back to status codes.
"""
