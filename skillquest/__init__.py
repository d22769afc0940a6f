"""
SkillQuest typed API contract layer.

- integrations/contracts: wire models, the route descriptor table, URL building
- integrations/policy: response parsing and error mapping
- integrations/clients: real HTTP and in-process platform clients
- database: the client-side query cache and the server's in-memory storage
- hooks: cache-keyed reads and invalidating mutations
- api: the reference FastAPI server
"""

__version__ = "1.0.0"
