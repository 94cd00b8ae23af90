"""
Shared infrastructure of the EventFlow apps

- base: BaseModel, SoftDeleteModel, BaseAPIView
- cache: CacheKeys, CacheManager
- decorators: database error translation and retries
- exceptions: business exception hierarchy and the API exception handler
- container: service wiring

Import from the submodules directly to avoid circular imports.
"""
