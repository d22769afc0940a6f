"""
Policy helpers applied around every client call: request validation, response
validation and the status-to-error mapping.
"""
