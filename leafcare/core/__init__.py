# Core configuration, errors and dependency wiring
