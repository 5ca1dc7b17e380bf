"""Wire events shared by the connection handler and the tick loop."""
