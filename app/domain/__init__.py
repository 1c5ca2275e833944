"""Domain packages: each holds router, service, repository and (where needed) schemas"""
