"""Pet health lifecycle and scheduling engine.

This package contains the lifecycle calculator, catalog matching, vaccine
scheduling and the reminder batch job, isolated from storage and delivery
so they can be tested and reasoned about on their own.
"""
