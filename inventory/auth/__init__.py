"""Identity core: credential verification, authorization and sessions"""
