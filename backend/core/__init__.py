"""
ForehandCoach core: domain models, configuration and swing analysis services.
"""
