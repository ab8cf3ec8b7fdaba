"""
Helpdesk Portal backend
"""
