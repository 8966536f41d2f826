# Pastel row backgrounds keyed by the `status` column the API sends along
STATUS_BG_COLORS = {
    "Active":   "#BBF7D0",  # light green
    "Inactive": "#E5E7EB",  # light grey
    "Pending":  "#FED7AA",  # light saffron
}

DEFAULT_BG_COLOR = "#F3F4F6"
