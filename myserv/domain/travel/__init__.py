"""Travel domain - distance measurement and travel fee pricing"""
