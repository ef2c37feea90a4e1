"""Study planner: task prioritization, daily lanes and exam readiness."""
