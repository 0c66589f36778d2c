"""Quiz assessment engine: authoring, timed taking and scoring of quizzes."""
