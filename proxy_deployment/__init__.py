"""
proxy-deployment: deploy, upgrade and verify contracts behind
OpenZeppelin transparent upgradeable proxies with ape.
"""
