"""deno-sv - set up Svelte/SvelteKit projects on Deno."""

__version__ = "0.1.0"
