"""
Services module for business logic separation.

Resolver, analytics recorder, aggregation engine and the services around
them. None of them know about HTTP; they are wired together by
shortlinks.core.container.
"""
