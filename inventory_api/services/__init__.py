"""
Domain services. Each service owns the unit of work for its operations and
delegates data access to repositories.
"""
