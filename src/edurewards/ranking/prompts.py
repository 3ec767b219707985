"""Prompt template for the top-students ranking oracle."""

TOP_STUDENTS_PROMPT = """\
You are an expert data analyst for an e-learning platform. Your task is to identify \
the top {n} most engaged and highest-performing students from the provided list.

Consider the following factors for each student:
- `points_balance`: Higher is better. This is the primary indicator of engagement.
- `courses_completed`: More completed courses show dedication.
- `tests_taken`: A high number of tests indicates active learning.
- `last_login`: Recent activity is a positive sign.

Analyze the following student data:
{students_json}

Based on your analysis, return exactly {n} distinct student `uid` values from the data, \
ordered from the best student (rank 1) to rank {n}. Only use uids that appear in the data.
"""
