from collections import Counter

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt

from sphere_navigation import SphereNavigationEnv
from sphere_navigation.policies import GreedyPolicy


def evaluate_policy(policy, episodes=20, seed=42, max_episode_steps=1500):
    """Run ``policy`` for a number of episodes and collect rewards and outcomes.

    Args:
        policy (Callable[[np.ndarray], np.ndarray]): Maps observations to actions.
        episodes (int): Number of episodes.
        seed (int): Seed of the first reset.
        max_episode_steps (int): Truncation limit per episode.

    Returns:
        tuple[list[float], list[str]]: Reward and outcome per episode.
    """
    env = SphereNavigationEnv(max_episode_steps=max_episode_steps)
    rewards = []
    outcomes = []
    observation, info = env.reset(seed=seed)

    for episode in range(episodes):
        if hasattr(policy, "reset"):
            policy.reset()
        total_reward = 0.0
        done = False
        while not done:
            observation, reward, terminated, truncated, info = env.step(policy(observation))
            total_reward += reward
            done = terminated or truncated

        outcome = info["outcome"] if terminated else "truncated"
        rewards.append(total_reward)
        outcomes.append(outcome)
        print(f"Episode {episode} finished with {outcome} after {info['step']} steps, reward: {total_reward:.3f}")
        observation, info = env.reset()

    env.close()
    return rewards, outcomes


def plot_results(rewards, outcomes, path="greedy_evaluation.png"):
    fig, axs = plt.subplots(2, 1, figsize=(8, 6))

    axs[0].plot(rewards, label="Reward")
    axs[0].set_title("Reward per episode")
    axs[0].set_xlabel("Episode")
    axs[0].set_ylabel("Reward")
    axs[0].legend()
    axs[0].grid(True)

    counts = Counter(outcomes)
    axs[1].bar(list(counts.keys()), list(counts.values()), color="orange")
    axs[1].set_title("Episode outcomes")
    axs[1].set_ylabel("Episodes")

    plt.tight_layout()
    plt.savefig(path)
    plt.close(fig)


if __name__ == "__main__":
    rewards, outcomes = evaluate_policy(GreedyPolicy(), episodes=20)
    plot_results(rewards, outcomes)
    print("Saved evaluation plot to greedy_evaluation.png")
