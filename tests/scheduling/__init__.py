"""
Job service test suite.

- Identity and matcher resolution
- Descriptor projection
- Service queries, commands and error translation
- Job-type builders and fire-time handlers
- APScheduler engine adapter
"""
