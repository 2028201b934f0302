# ui.tabs package
