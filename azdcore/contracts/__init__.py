"""Option, hook and workflow models shared by project and service configuration."""