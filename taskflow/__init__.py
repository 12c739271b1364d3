"""TaskFlow: tasks, projects, goals and automations."""
