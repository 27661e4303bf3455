"""
services/ — The workflow engine.

Every operation takes an explicit (db, actor, ...) and either returns its
result or raises a services.errors.WorkflowError subclass.
"""
