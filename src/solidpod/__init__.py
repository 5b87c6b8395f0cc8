"""Client-side access to the containers and text resources of a Solid pod."""
