"""Pipeline : étapes de synchronisation exécutées par PipelineRunner."""
