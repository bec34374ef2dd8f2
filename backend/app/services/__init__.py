"""Services Layer — imperative shell around the pure core.

Invariants:
    - Services receive EdgeStore / UserDirectory through their constructors
    - Status changes are planned in core/ and applied through compare-and-set

Design Decisions:
    - SQL stores (edge_store, user_directory) and orchestrators (connection_service,
      recommendation_service) in one layer; routes depend only on orchestrators
"""
