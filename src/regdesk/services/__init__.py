"""Business services for regdesk"""
