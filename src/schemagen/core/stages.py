GENERATE_STAGES = [
    ("load_config", "Load config"),
    ("import_target", "Import target"),
    ("generate_schema", "Generate schema"),
    ("build_document", "Build document"),
    ("write_output", "Write output"),
]
