"""CodePilot: bounded developer/QA agent orchestration."""
