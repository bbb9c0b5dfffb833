"""
sellabroad.integration

Outbound calls: the lead-capture endpoint behind the report download.
"""
