"""RigSurvey application package."""
