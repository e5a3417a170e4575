"""MongoDB access: per-call store gateway and the blocking-call executor pool."""
