"""Worklog tracker: Jira worklogs, team check-ins and admin dashboards."""
