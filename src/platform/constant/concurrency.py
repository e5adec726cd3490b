# Re-reads allowed after a lost compare-and-set before giving up with a conflict
CAS_MAX_ATTEMPTS = 3

# Waiting entries fetched per cascade run; later ones are reached on the next freed event
CASCADE_CANDIDATE_BATCH = 20
