"""Domain services: parsing, aggregation, salary, import workflow, reporting."""
